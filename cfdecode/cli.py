"""Command-line interface for inspecting CF grammars and records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click
from lark.exceptions import LarkError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cfdecode.cf import (
    ArrayProperty,
    CFString,
    Deserializer,
    IntegerArrayProperty,
    IntegerProperty,
    PointerProperty,
    Property,
    format_hex32,
)
from cfdecode.errors import CFError
from cfdecode.grammar import GRAMMAR_FORMATS, LayoutCalculator, TypeRegistry, load_grammar_file
from cfdecode.grammar.layout import ClassLayout


def _load(grammar_file: str, grammar_format: str) -> TypeRegistry:
    try:
        return load_grammar_file(grammar_file, grammar_format)
    except (CFError, LarkError) as err:
        raise click.ClickException(f"Cannot load grammar: {err}") from err


def _parse_offset(_ctx: click.Context, _param: click.Parameter, value: str) -> int:
    try:
        return int(value, 0)
    except ValueError:
        raise click.BadParameter(f"{value!r} is not an integer") from None


def _format_size(size: int | None) -> str:
    """Format a size value, handling None for unbounded."""
    return "unbounded" if size is None else str(size)


def _format_range(layout: ClassLayout) -> str:
    if layout.min_size == layout.max_size:
        return f"{layout.min_size} bytes"
    return f"{layout.min_size}-{_format_size(layout.max_size)} bytes"


grammar_option = click.option(
    "--grammar", "-g", "grammar_file", required=True, type=click.Path(exists=True), help="Grammar file"
)
format_option = click.option(
    "--format",
    "grammar_format",
    type=click.Choice(GRAMMAR_FORMATS),
    default="auto",
    show_default=True,
    help="Grammar file format",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Inspect CF grammars and decode CF records."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
@grammar_option
@format_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(grammar_file: str, grammar_format: str, output_json: bool) -> None:
    """Display every class of a grammar with its size."""
    registry = _load(grammar_file, grammar_format)
    try:
        layouts = LayoutCalculator(registry).calc_all()
    except CFError as err:
        raise click.ClickException(str(err)) from err

    if output_json:
        data = {name: layout.to_dict() for name, layout in layouts.items()}
        click.echo(json.dumps(data, indent=2))
        return

    console = Console()
    console.print("[bold cyan]Classes[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("ID", style="green", justify="right")
    table.add_column("Size", style="yellow", justify="right")
    table.add_column("Kind", style="dim")
    table.add_column("Attribs", justify="right")

    for name, layout in layouts.items():
        table.add_row(name, str(layout.id), _format_range(layout), layout.kind.value, str(len(layout.fields)))

    console.print(table)


@cli.command()
@grammar_option
@format_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.argument("class_name")
def layout(grammar_file: str, grammar_format: str, output_json: bool, class_name: str) -> None:
    """Display the flattened wire layout of one class."""
    registry = _load(grammar_file, grammar_format)
    try:
        class_layout = LayoutCalculator(registry).calc_by_name(class_name)
    except CFError as err:
        raise click.ClickException(str(err)) from err

    if output_json:
        click.echo(json.dumps(class_layout.to_dict(), indent=2))
        return

    console = Console()
    console.print(
        f"[bold cyan]{class_layout.name}[/bold cyan] #{class_layout.id} "
        f"({_format_range(class_layout)}, {class_layout.kind.value})"
    )
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Offset", style="green", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Type", style="yellow")
    table.add_column("Size", justify="right")
    table.add_column("Mask", style="dim")

    for field in class_layout.fields:
        type_str = field.type
        if field.pointer_target:
            type_str += f"{'[]' if field.array else ''} -> {field.pointer_target}"
        elif field.count > 1:
            type_str += f"[{field.count}]"
        table.add_row(
            "?" if field.offset is None else str(field.offset),
            escape(field.name),
            escape(type_str),
            "dynamic" if field.size is None else str(field.size),
            f"0x{field.mask:02x}" if field.mask else "",
        )

    console.print(table)


def _property_value(prop: Property) -> Any:
    if isinstance(prop, IntegerProperty):
        return prop.value
    if isinstance(prop, IntegerArrayProperty):
        return list(prop.value)
    if isinstance(prop, PointerProperty):
        return "(null)" if prop.pointer.is_null else prop.pointer.inspect()
    if isinstance(prop, ArrayProperty):
        return f"{len(prop)} items (type {prop.type_of_data})"
    return ""


@cli.command()
@grammar_option
@format_option
@click.option("--offset", "-o", default="0", callback=_parse_offset, help="Record offset")
@click.argument("cf_file", type=click.Path(exists=True, dir_okay=False))
def record(grammar_file: str, grammar_format: str, offset: int, cf_file: str) -> None:
    """Decode a single record and display its properties."""
    registry = _load(grammar_file, grammar_format)
    data = Path(cf_file).read_bytes()

    deserializer = Deserializer(registry)
    try:
        obj = deserializer.decode(data, offset)
        contents = obj.get_contents(data) if isinstance(obj, CFString) else None
    except CFError as err:
        raise click.ClickException(str(err)) from err

    console = Console()
    console.print(f"[bold cyan]{obj.type.name}[/bold cyan] #{obj.type.id} at {format_hex32(obj.address)}")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Location", style="green")
    table.add_column("Name", style="white")
    table.add_column("Value", style="yellow")

    for prop in obj.properties:
        table.add_row(format_hex32(prop.location), escape(prop.attrib.name), escape(str(_property_value(prop))))

    console.print(table)
    if contents is not None:
        console.print(f"Text: {escape(repr(contents))}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
