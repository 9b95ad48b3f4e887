"""
calldata-builder command line.

Usage:
    calldata-builder encode --template erc20-transfer --set amount=5
    calldata-builder encode call.json --to 0x... --value 0
    calldata-builder validate call.json
    calldata-builder describe --template swap-exact-input-single
    calldata-builder templates
    calldata-builder types uint
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from calldata_builder.abi_types import placeholder_for_type, search_catalogue, type_hint
from calldata_builder.builder import CallBuilder
from calldata_builder.config import load_settings
from calldata_builder.errors import CallBuilderError, InvalidValueError
from calldata_builder.logging import JsonlLogger, default_run_id
from calldata_builder.schema import CallTemplate
from calldata_builder.templates import EXAMPLE_TEMPLATES, get_template, list_templates
from calldata_builder.validator import ValidationReport

console = Console()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    sys.exit(1)


def _read_template(args: argparse.Namespace) -> CallTemplate:
    if args.template:
        return get_template(args.template)
    if args.file is None:
        _fail("either FILE or --template is required")
    try:
        data = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read call template from {args.file}: {e}")
    return data


def _parse_assignment(raw: str) -> tuple[str, Any]:
    if "=" not in raw:
        raise InvalidValueError(raw, "expected NAME=VALUE")
    name, value = raw.split("=", 1)
    value = value.strip()
    if value[:1] in ("[", "{"):
        try:
            return name.strip(), json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidValueError(name, f"invalid JSON value: {e}") from e
    return name.strip(), value


def _build(args: argparse.Namespace, event_log: JsonlLogger | None = None) -> tuple[CallBuilder, CallTemplate]:
    template = _read_template(args)
    builder = CallBuilder(event_log=event_log)
    builder.load_template(template)
    for raw in getattr(args, "set", None) or []:
        name, value = _parse_assignment(raw)
        path = builder.find_path(name)
        if path is None:
            raise InvalidValueError(name, "no parameter or field with that name")
        builder.set_value(path, value)
    return builder, template


def _path_label(builder: CallBuilder, path: tuple[str, ...]) -> str:
    """Render an identifier path with names (and item positions) for display."""
    if not path:
        return "(function name)"
    labels = []
    node = builder.function.find_parameter(path[0])
    labels.append(node.name if node is not None else path[0])
    value = builder.store.get(path[0])
    for seg in path[1:]:
        if node is None:
            labels.append(seg)
            continue
        if node.type_info.is_array:
            items = value if isinstance(value, list) else []
            index = next((i for i, item in enumerate(items) if item.identifier == seg), None)
            labels.append(str(index) if index is not None else seg)
            value = items[index].value if index is not None else None
            node = node.template
        else:
            child = node.find_component(seg)
            labels.append(child.name if child is not None else seg)
            value = value.get(child.name) if isinstance(value, dict) and child is not None else None
            node = child
    return ".".join(labels)


def _print_report(builder: CallBuilder, report: ValidationReport) -> None:
    if report.valid:
        console.print(
            f"[green]✓[/green] {escape(builder.function.signature())} is complete "
            f"({report.extractable_count}/{report.parameter_count} parameters)"
        )
        return
    table = Table(title="Validation failures")
    table.add_column("Field", style="cyan")
    table.add_column("Reason", style="red")
    for failure in report.failures:
        table.add_row(escape(_path_label(builder, failure.path)), escape(failure.reason))
    console.print(table)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_encode(args: argparse.Namespace) -> None:
    jsonl = None
    if args.log_dir is not None:
        jsonl = JsonlLogger(base_dir=args.log_dir, run_id=default_run_id(prefix="encode"))

    builder, template = _build(args, event_log=jsonl)
    report = builder.validate()
    if not report.valid:
        _print_report(builder, report)
        sys.exit(1)

    to = args.to or args.settings.default_target
    out: Any = builder.prepare_transaction(to, args.value) if to else builder.encode()

    if jsonl is not None:
        jsonl.snapshot(builder, template=args.template or str(args.file), description=template.get("description"))

    sys.stdout.write((json.dumps(out, indent=2) if to else out) + "\n")


def cmd_validate(args: argparse.Namespace) -> None:
    builder, _ = _build(args)
    report = builder.validate()
    _print_report(builder, report)
    if not report.valid:
        sys.exit(1)


def cmd_describe(args: argparse.Namespace) -> None:
    builder, template = _build(args)
    desc = builder.describe()
    console.print(f"[bold]name:[/bold] {escape(desc['name'])}", soft_wrap=True)
    console.print(f"[bold]signature:[/bold] {escape(desc['signature'])}", soft_wrap=True)
    console.print(f"[bold]display:[/bold] {escape(desc['display'])}", soft_wrap=True)
    if template.get("target"):
        console.print(f"[bold]target:[/bold] {escape(template['target'])}", soft_wrap=True)


def cmd_templates(args: argparse.Namespace) -> None:
    table = Table(title="Built-in templates")
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Function")
    table.add_column("Description")
    for slug in list_templates():
        t = EXAMPLE_TEMPLATES[slug]
        table.add_row(slug, t["name"], t.get("description", ""))
    console.print(table)


def cmd_types(args: argparse.Namespace) -> None:
    groups = search_catalogue(args.query or "")
    if not groups:
        console.print(f"No types match {escape(args.query)!r}")
        return
    table = Table(title="Type catalogue")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Types")
    for category, tags in groups.items():
        table.add_row(category, ", ".join(tags))
    console.print(table)
    matched = [tag for tags in groups.values() for tag in tags]
    if len(matched) == 1:
        console.print(f"{escape(type_hint(matched[0]))} (e.g. {escape(placeholder_for_type(matched[0]))})", soft_wrap=True)


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", nargs="?", type=Path, help="JSON call template")
    p.add_argument("--template", choices=list_templates(), help="Use a built-in template instead of FILE")
    p.add_argument(
        "--set",
        action="append",
        metavar="NAME=VALUE",
        help="Override a value; NAME is dotted (params.amountIn, recipients.0); JSON lists for arrays",
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Build and encode smart-contract function calls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  calldata-builder templates
  calldata-builder encode --template erc20-transfer --set to=0x1111111111111111111111111111111111111111
  calldata-builder encode call.json --to 0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48
  calldata-builder types uint
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_encode = subparsers.add_parser("encode", help="Encode call data (or a transaction with --to)")
    _add_source_args(p_encode)
    p_encode.add_argument("--to", type=str, help="Target contract; prints a prepared transaction")
    p_encode.add_argument("--value", type=int, default=0, help="Native value attached to the transaction")
    p_encode.add_argument("--log-dir", type=Path, default=None, help="Write JSONL session logs under this directory")
    p_encode.set_defaults(func=cmd_encode)

    p_validate = subparsers.add_parser("validate", help="Report per-field validation failures")
    _add_source_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    p_describe = subparsers.add_parser("describe", help="Print the function name and signatures")
    _add_source_args(p_describe)
    p_describe.set_defaults(func=cmd_describe)

    p_templates = subparsers.add_parser("templates", help="List built-in templates")
    p_templates.set_defaults(func=cmd_templates)

    p_types = subparsers.add_parser("types", help="List supported types, optionally filtered")
    p_types.add_argument("query", nargs="?", default="", help="Subsequence search, e.g. 'u256'")
    p_types.set_defaults(func=cmd_types)

    args = parser.parse_args(argv)

    args.settings = settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        args.func(args)
    except CallBuilderError as e:
        logger.debug("Command failed: %s", e.to_dict())
        _fail(e.message)


if __name__ == "__main__":
    main()
