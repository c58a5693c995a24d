"""Tests for writing generated files."""
import pytest

from entitygen.core.config import Settings
from entitygen.generators.entity_gen.errors import EmissionError
from entitygen.generators.entity_gen.types import GeneratedFile
from entitygen.generators.entity_gen.writer import FileEmitter, write_files


def files(base="base v1", scaffold="scaffold v1"):
    return [
        GeneratedFile(path="app/entities/generated/post_base.py", content=base),
        GeneratedFile(path="app/entities/post.py", content=scaffold, created=True),
    ]


def test_first_run_creates_everything(tmp_path):
    emitted = FileEmitter(tmp_path, force=False, dry_run=False).emit(files())
    assert [e.action for e in emitted] == ["created", "created"]
    assert (tmp_path / "app/entities/generated/post_base.py").read_text(encoding="utf-8") == "base v1"
    assert (tmp_path / "app/entities/post.py").read_text(encoding="utf-8") == "scaffold v1"


def test_rerun_rewrites_base_and_keeps_scaffold(tmp_path):
    emitter = FileEmitter(tmp_path, force=False, dry_run=False)
    emitter.emit(files())
    (tmp_path / "app/entities/post.py").write_text("hand edited", encoding="utf-8")

    emitted = emitter.emit(files(base="base v2", scaffold="scaffold v2"))
    assert [e.action for e in emitted] == ["updated", "skipped"]
    assert (tmp_path / "app/entities/generated/post_base.py").read_text(encoding="utf-8") == "base v2"
    assert (tmp_path / "app/entities/post.py").read_text(encoding="utf-8") == "hand edited"


def test_force_overwrites_scaffold(tmp_path):
    write_files(files(), tmp_path)
    emitted = write_files(files(scaffold="scaffold v2"), tmp_path, force=True)
    assert [e.action for e in emitted] == ["updated", "updated"]
    assert (tmp_path / "app/entities/post.py").read_text(encoding="utf-8") == "scaffold v2"


def test_dry_run_touches_nothing(tmp_path):
    emitted = FileEmitter(tmp_path, force=False, dry_run=True).emit(files())
    assert [e.action for e in emitted] == ["created", "created"]
    assert not (tmp_path / "app").exists()


def test_defaults_come_from_settings(tmp_path):
    emitter = FileEmitter(settings=Settings(output_dir=str(tmp_path), force=True, dry_run=True))
    assert emitter.out_dir == tmp_path
    assert emitter.force is True
    assert emitter.dry_run is True


def test_write_failure_raises_emission_error(tmp_path):
    (tmp_path / "app").write_text("not a directory", encoding="utf-8")
    with pytest.raises(EmissionError) as exc_info:
        FileEmitter(tmp_path, force=False, dry_run=False).emit(files())
    assert exc_info.value.path == "app/entities/generated/post_base.py"


def test_path_locks_belong_to_the_emitter(tmp_path):
    emitter = FileEmitter(tmp_path, force=False, dry_run=False)
    other = FileEmitter(tmp_path, force=False, dry_run=False)
    path = tmp_path / "app" / "entities" / "post.py"
    assert emitter._lock_for(path) is emitter._lock_for(path)
    assert other._lock_for(path) is not emitter._lock_for(path)
    emitter.emit(files())
    assert FileEmitter(tmp_path, force=False, dry_run=False)._locks == {}
