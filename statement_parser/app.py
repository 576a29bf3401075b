#!/usr/bin/env python3
"""
CLI interface for the bank statement parser.
"""
import typer
from datetime import date
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .core.runner import parse_statement
from .core.detectors import PatternRegistry, detect_pattern
from .core.errors import StatementParseError
from .core.export import to_csv, to_cashew_csv
from .tools.debug_overlay import create_debug_overlay

app = typer.Typer(help="Bank statement PDF parser")
console = Console()

FORMATS = ("json", "csv", "cashew")


@app.command()
def parse(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output file path"),
    pattern: Optional[str] = typer.Option(None, "--pattern", "-p", help="Bank pattern ID to use"),
    output_format: str = typer.Option("json", "--format", "-f", help="Output format: json, csv or cashew"),
    year: int = typer.Option(date.today().year, "--year", help="Statement year for cashew dates"),
    debug_overlay: Optional[Path] = typer.Option(None, "--debug-overlay", help="Create debug overlay images"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a bank statement PDF into transactions."""

    if output_format not in FORMATS:
        console.print(f"[red]Error: unknown format '{output_format}', use one of {', '.join(FORMATS)}[/red]")
        raise typer.Exit(1)

    if not pdf_path.exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Parsing PDF...", total=None)

            if not pattern:
                progress.update(task, description="Detecting bank pattern...")
                pattern = detect_pattern(pdf_path)
                if not pattern:
                    console.print("[red]Error: Could not detect a bank pattern for this PDF[/red]")
                    raise typer.Exit(1)

            progress.update(task, description="Extracting transactions...")
            result = parse_statement(pdf_path=pdf_path, pattern_id=pattern, verbose=verbose)

            if output_format == "csv":
                rendered = to_csv(result.transactions)
            elif output_format == "cashew":
                config = PatternRegistry().get_pattern(pattern).config
                rendered = to_cashew_csv(result.transactions, year,
                                         config.thousands_separator, config.decimal_separator)
            else:
                rendered = result.model_dump_json(indent=2)

            if output:
                progress.update(task, description="Writing output...")
                output.write_text(rendered, encoding="utf-8")
                console.print(f"[green]✓ Parsed {len(result.transactions)} transactions! "
                              f"Output written to: {output}[/green]")
            else:
                console.print(rendered, markup=False, soft_wrap=True)

            if debug_overlay:
                progress.update(task, description="Creating debug overlay...")
                create_debug_overlay(pdf_path, pattern, debug_overlay)
                console.print(f"[blue]Debug overlay created in: {debug_overlay}[/blue]")

    except StatementParseError as e:
        console.print(f"[red]Error parsing PDF: {e}[/red]")
        if verbose:
            console.print(f"[yellow]{e.kind}: {e.detail}[/yellow]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Error reading PDF: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def detect(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file")
):
    """Detect which bank pattern matches a PDF file."""
    try:
        pattern = detect_pattern(pdf_path)
    except OSError as e:
        console.print(f"[red]Error detecting pattern: {e}[/red]")
        raise typer.Exit(1)

    if not pattern:
        console.print("[red]No matching pattern found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Detected pattern: {pattern}[/green]")


@app.command()
def patterns():
    """List the registered bank patterns."""
    registry = PatternRegistry()
    table = Table(title="Bank patterns")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Amounts")

    for pattern_id in registry.list_patterns():
        layout = registry.get_pattern(pattern_id)
        table.add_row(pattern_id, layout.config.name, ", ".join(layout.amount_fields))

    console.print(table)


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to JSON file to validate")
):
    """Validate a JSON file against the schema."""
    from pydantic import ValidationError
    from .models.schema import StatementData

    try:
        data = StatementData.model_validate_json(json_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[red]Validation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ JSON is valid[/green]")
    console.print(f"Pattern: {data.pattern_id}")
    console.print(f"Bank: {data.bank}")
    console.print(f"Transactions: {len(data.transactions)}")


if __name__ == "__main__":
    app()
