# ocrsearch/interface/cli.py

from enum import IntEnum
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from ocrsearch.domain.models import IngestionReport, Record, SearchHit, SearchResults


console = Console()


class MenuAction(IntEnum):
    SUBMIT = 1
    LIST   = 2
    SEARCH = 3
    EXIT   = 4


def parse_menu_choice(raw: str) -> Optional[MenuAction]:
    """Return the chosen action, or None for non-numeric / out-of-range input."""
    try:
        return MenuAction(int(raw.strip()))
    except (ValueError, AttributeError):
        return None


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]🔍 Intelligent OCR & Document Search[/bold cyan]\n"
        "[dim]Tesseract OCR → SQL record store → full-text index[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_menu() -> None:
    console.print(
        "\n[bold]1.[/bold] Upload & process document (OCR, store, index)"
        "\n[bold]2.[/bold] View all stored documents"
        "\n[bold]3.[/bold] Search documents by keyword"
        "\n[bold]4.[/bold] Exit"
    )


def prompt_for_choice() -> str:
    return Prompt.ask("\n[bold yellow]Enter your choice[/bold yellow]")


def prompt_for_path() -> str:
    return Prompt.ask("[bold yellow]📄 Full path to image/document (JPG, PNG, PDF)[/bold yellow]").strip()


def prompt_for_keyword() -> str:
    return Prompt.ask("[bold yellow]❓ Keyword for full-text search[/bold yellow]", default="").strip()


def display_ingestion_report(report: IngestionReport) -> None:
    if report.record is not None:
        record = report.record
        body = Text()
        body.append("📄 File: ", style="dim")
        body.append(record.filename, style="bold white")
        body.append(f"\n🆔 Document ID: {record.id}")
        body.append(f"\n🎯 Confidence: {record.confidence:.2f}%")
        body.append(f"\n\n{report.preview}")
        console.print(Panel(
            body,
            title="[bold]Extracted OCR Text[/bold]",
            border_style="green" if report.warning is None else "yellow",
            box=box.ROUNDED,
            padding=(1, 2),
        ))

    if report.warning:
        display_warning(f"{report.message} {report.warning}")
    elif report.succeeded:
        console.print(f"\n[green]✓[/green] {escape(report.message)}\n")
    elif report.is_informational:
        display_info(report.message)
    else:
        display_error(report.message)


def display_records(records: List[Record]) -> None:
    if not records:
        display_info("No documents currently stored.")
        return

    table = Table(title="Stored Documents", box=box.SIMPLE_HEAVY)
    table.add_column("ID", justify="right", style="bold")
    table.add_column("Filename")
    table.add_column("Confidence", justify="right")
    table.add_column("Uploaded")
    for record in records:
        table.add_row(
            str(record.id),
            record.filename,
            f"{record.confidence:.2f}%",
            record.upload_time_text,
        )
    console.print(table)


def display_search_results(results: SearchResults) -> None:
    console.print(
        f"\n[bold]Results for:[/bold] [italic]\"{escape(results.keyword)}\"[/italic] "
        f"[dim](Total hits: {results.total})[/dim]\n"
    )

    if results.is_empty:
        display_info("No matching documents found.")
        return

    for rank, hit in enumerate(results.hits, start=1):
        panel_content = Text()
        panel_content.append("📄 Filename: ", style="dim")
        panel_content.append(hit.filename, style="bold white")
        panel_content.append(f"\n⭐ Score: {hit.score:.4f}\n\n")
        panel_content.append_text(_highlighted_text(hit))

        console.print(Panel(
            panel_content,
            title=f"[bold]#{rank}[/bold]",
            border_style="cyan",
            box=box.ROUNDED,
            padding=(1, 2),
        ))

    if results.skipped:
        display_warning(f"{results.skipped} hit(s) skipped: stored fields were incomplete.")


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {escape(message)}\n")


def display_warning(message: str) -> None:
    console.print(f"\n[bold yellow]⚠ Warning:[/bold yellow] {escape(message)}\n")


def display_info(message: str) -> None:
    console.print(f"\n[cyan]ℹ[/cyan] {escape(message)}\n")


def display_goodbye() -> None:
    console.print("\n👋 Exiting system. Goodbye!")


def _highlighted_text(hit: SearchHit) -> Text:
    """OCR text is appended as plain text, never parsed as markup."""
    if not hit.segments:
        return Text(hit.snippet)
    text = Text()
    for part, highlighted in hit.segments:
        text.append(part, style="bold yellow" if highlighted else None)
    return text
