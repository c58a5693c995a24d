"""Usage-driven, sorted import blocks for generated modules."""
import re
from typing import Dict, Iterable, List, Set

GENERATED_HEADER = "# Generated by entitygen. Do not edit: this file is rewritten on every run."

TYPING_NAMES = ("Annotated", "Any", "ClassVar", "Dict", "List", "Optional")

_STRING_RE = re.compile(r'"""[\s\S]*?"""|\'(?:\\.|[^\'\\])*\'|"(?:\\.|[^"\\])*"')


def strip_strings(source: str) -> str:
    """Remove string literals so names inside descriptions are not mistaken for usage."""
    return _STRING_RE.sub("''", source)


def used_names(source: str, candidates: Iterable[str]) -> List[str]:
    """Return the candidate names referenced as identifiers in source code."""
    code = strip_strings(source)
    return [name for name in candidates if re.search(rf"(?<![\w.]){re.escape(name)}\b", code)]


class ImportCollector:
    """Collects "from module import name" statements in stdlib, third-party and local groups."""

    GROUPS = ("stdlib", "third_party", "local")

    def __init__(self):
        self._groups: Dict[str, Dict[str, Set[str]]] = {group: {} for group in self.GROUPS}

    def add(self, group: str, module: str, *names: str) -> None:
        if names:
            self._groups[group].setdefault(module, set()).update(names)

    def add_used(self, group: str, module: str, source: str, candidates: Iterable[str]) -> None:
        self.add(group, module, *used_names(source, candidates))

    def render(self) -> List[str]:
        lines: List[str] = []
        for group in self.GROUPS:
            modules = self._groups[group]
            if not modules:
                continue
            if lines:
                lines.append("")
            for module in sorted(modules):
                lines.append(f"from {module} import {', '.join(sorted(modules[module]))}")
        return lines
