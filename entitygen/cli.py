"""Command line entry point: generate entity modules from schema files or shorthand."""
import argparse
import logging
import sys
from typing import List, Optional

from entitygen.core.config import settings
from entitygen.core.logging import configure_logging
from entitygen.generators.entity_gen.errors import EmissionError, SchemaError
from entitygen.generators.entity_gen.factory import GeneratorFactory
from entitygen.generators.entity_gen.parser import parse_shorthand_entity
from entitygen.generators.entity_gen.types import BatchReport, GenerationResult
from entitygen.generators.entity_gen.writer import FileEmitter

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="entitygen", description="Generate entity, input and CRUD router modules")
    parser.add_argument("--log-level", default=None, help=f"Log level (default: {settings.log_level})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate from JSON/YAML schema files")
    generate.add_argument("schemas", nargs="+", help="Schema files (.json, .yaml, .yml)")
    _add_output_options(generate)

    scaffold = subparsers.add_parser("scaffold", help="Generate from shorthand attributes")
    scaffold.add_argument("name", help="Entity name (PascalCase), e.g. Post")
    scaffold.add_argument("attributes", nargs="*", help="Attributes such as title:string authorId:string content:text?")
    _add_output_options(scaffold)

    serve = subparsers.add_parser("serve", help="Run the HTTP preview service")
    serve.add_argument("--host", default=settings.api_host)
    serve.add_argument("--port", type=int, default=settings.api_port)

    return parser


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--out", default=None, help=f"Output directory (default: {settings.output_dir})")
    parser.add_argument("--force", action="store_true", default=None, help="Overwrite existing scaffold files")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Report what would be written")


def _print_result(result: GenerationResult) -> None:
    status = "OK" if result.success else "FAILED"
    print(f"{result.entity_name}: {status}")
    for error in result.errors:
        print(f"  ERROR: {error}")


def _emit(report: BatchReport, emitter: FileEmitter) -> bool:
    ok = report.success
    for label, errors in report.failures.items():
        print(f"{label}: FAILED")
        for error in errors:
            print(f"  ERROR: {error}")
    for result in report.results:
        _print_result(result)
        try:
            for emitted in emitter.emit(result.files):
                print(f"  {emitted.action:<8} {emitted.path}")
        except EmissionError as e:
            print(f"  ERROR: {e}")
            ok = False
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("entitygen.main:app", host=args.host, port=args.port)
        return 0

    factory = GeneratorFactory()
    emitter = FileEmitter(args.out, force=args.force, dry_run=args.dry_run)

    if args.command == "generate":
        report = factory.generate_from_files(args.schemas)
    else:
        try:
            entity = parse_shorthand_entity(args.name, args.attributes)
        except SchemaError as e:
            print(f"ERROR: {e}")
            return 1
        report = factory.generate_batch({args.name: entity})

    return 0 if _emit(report, emitter) else 1


if __name__ == "__main__":
    sys.exit(main())
