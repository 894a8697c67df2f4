"""
CLI Main - Typer-based command-line interface.

Usage:
    billsnap extract path/to/receipt.jpg
    billsnap extract receipt.jpg --server http://localhost:8000
    billsnap ocr receipt.jpg
    billsnap serve
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.text import Text

from billsnap.config import get_settings, setup_logging
from billsnap.config.errors import ErrorCode, InvalidInputError
from billsnap.domains.extraction import (
    ExtractionFailure,
    ExtractionResult,
    ExtractionSuccess,
    purpose_label,
    result_to_body,
)
from billsnap.domains.session import (
    ExtractionOrchestrator,
    ExtractionSession,
    ExtractionTransport,
    ImageSource,
)

app = typer.Typer(
    name="billsnap",
    help="BillSnap - Receipt and bill image to structured expense data",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="DEBUG, INFO, WARNING..."),
) -> None:
    """Configure logging for every command."""
    setup_logging(log_level or get_settings().log_level, rich=True)


@app.command()
def extract(
    image_path: Path = typer.Argument(..., help="Path to receipt image"),
    server: str | None = typer.Option(None, "--server", "-s", help="BillSnap API base URL"),
    attempts: int = typer.Option(1, "--attempts", "-a", min=1, help="Tries on connection failure (--server only)"),
    as_json: bool = typer.Option(False, "--json", "-j", help="Print the HTTP-style JSON body"),
) -> None:
    """Extract bill number, amount, purpose and text with Gemini."""
    _require_file(image_path)
    result = asyncio.run(_extract_async(image_path, server, attempts, as_json))
    _finish(result, as_json)


async def _extract_async(
    image_path: Path,
    server: str | None,
    attempts: int,
    quiet: bool,
) -> ExtractionResult | None:
    """Async extraction implementation."""
    from billsnap.domains.session import GatewayTransport, HttpExtractionTransport

    if server:
        settings = get_settings()
        async with HttpExtractionTransport(
            server,
            timeout=settings.extraction_timeout_seconds + 10,
            max_attempts=attempts,
        ) as transport:
            return await _run_session(image_path, transport, quiet, show_percent=False)

    from billsnap.interfaces.api.deps import get_gateway

    return await _run_session(image_path, GatewayTransport(get_gateway()), quiet, show_percent=False)


@app.command()
def ocr(
    image_path: Path = typer.Argument(..., help="Path to receipt image"),
    as_json: bool = typer.Option(False, "--json", "-j", help="Print the HTTP-style JSON body"),
) -> None:
    """Extract fields with local Tesseract OCR (no API key needed)."""
    _require_file(image_path)
    result = asyncio.run(_ocr_async(image_path, as_json))
    _finish(result, as_json)


async def _ocr_async(image_path: Path, quiet: bool) -> ExtractionResult | None:
    """Async local OCR implementation."""
    from billsnap.domains.session import LocalOcrTransport
    from billsnap.interfaces.api.deps import get_local_ocr

    return await _run_session(image_path, LocalOcrTransport(get_local_ocr()), quiet, show_percent=True)


async def _run_session(
    image_path: Path,
    transport: ExtractionTransport,
    quiet: bool,
    show_percent: bool,
) -> ExtractionResult | None:
    """Drive one orchestrated attempt, mirroring session changes onto a progress bar."""
    orchestrator = ExtractionOrchestrator(transport)
    try:
        orchestrator.select_image(ImageSource(path=image_path))
    except InvalidInputError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    columns = [SpinnerColumn(), TextColumn("[progress.description]{task.description}")]
    if show_percent:
        columns += [BarColumn(), TaskProgressColumn()]

    with Progress(*columns, console=console, transient=True, disable=quiet) as progress:
        task = progress.add_task("Starting...", total=100 if show_percent else None)

        def on_change(session: ExtractionSession) -> None:
            description = session.status.label
            if session.progress is not None:
                description = f"{description} ({session.progress.stage.value})"
                progress.update(task, completed=session.progress.percent)
            progress.update(task, description=description)

        orchestrator.subscribe(on_change)
        session = await orchestrator.run()

    return session.result


def _require_file(image_path: Path) -> None:
    if not image_path.exists():
        console.print(f"[red]Error:[/red] File not found: {image_path}")
        raise typer.Exit(1)


def _finish(result: ExtractionResult | None, as_json: bool) -> None:
    """Render a result and exit non-zero on failure."""
    if result is None:
        console.print("[red]Error:[/red] No result")
        raise typer.Exit(1)

    if as_json:
        _, body = result_to_body(result)
        console.print_json(data=body)
    elif isinstance(result, ExtractionSuccess):
        _print_success(result)
    else:
        _print_failure(result)

    if not result.ok:
        raise typer.Exit(1)


def _print_success(result: ExtractionSuccess) -> None:
    data = result.data

    table = Table(title="Extracted Bill", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Bill No", Text(data.bill_no))
    table.add_row("Amount", Text(data.amount, style="bold green"))
    table.add_row("Purpose", purpose_label(data.purpose))

    console.print(table)
    if data.raw_text:
        console.print(Panel(Text(data.raw_text), title="Raw Text", style="dim"))


def _print_failure(result: ExtractionFailure) -> None:
    console.print(f"\n[red]Error:[/red] {escape(result.message)}")
    if result.details:
        console.print(Text(result.details, style="dim"))
    if result.suggestion:
        console.print(Text(result.suggestion, style="yellow"))

    # Only AUTH_MISSING carries structured remediation
    if result.category == ErrorCode.AUTH_MISSING and result.remediation is not None:
        steps = "\n".join(
            f"  {i}. {step}" for i, step in enumerate(result.remediation.steps, 1)
        )
        console.print(
            Panel(
                Text(f"{result.remediation.instructions}\n\n{steps}"),
                title="Setup Required",
                style="yellow",
            )
        )


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting BillSnap API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "billsnap.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from billsnap import __version__

    console.print(f"BillSnap v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
