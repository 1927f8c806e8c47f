"""Export command: snapshot the Crossplane state of a cluster into an archive.

Example:

    xpstate export -o crossplane-state.tar.gz
"""

from __future__ import annotations

import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import click
from rich.console import Console
from rich.table import Table

from ..config import CLIConfig
from ..export import CancelToken, ExportError, ExportSummary, Options
from ..kube import build_exporter, load_api_client
from ..shared.logging import get_logger

console = Console()
logger = get_logger(__name__)


class ConsoleProgress:
    """Spinner and check marks on the console while an export runs."""

    SCAN_MSG = "Scanning control plane... "
    EXPORT_MSG = "Exporting resources... "
    ARCHIVE_MSG = "Archiving state... "

    def __init__(self, output: Console):
        self.console = output
        self._status = None
        self._message = ""

    def _start(self, message: str) -> None:
        self._stop()
        self._message = message
        self._status = self.console.status(message)
        self._status.start()

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def scanning(self) -> None:
        self._start(self.SCAN_MSG)

    def discovered(self, count: int) -> None:
        self._stop()
        self.console.print(f"[green]✓[/green] {self.SCAN_MSG}{count} types found! 👀")
        self._start(f"{self.EXPORT_MSG}0 / {count}")

    def exporting(self, done: int, total: int, group_resource: str) -> None:
        if self._status is None:
            return
        if group_resource:
            self._status.update(f"{self.EXPORT_MSG}{done} / {total} ({group_resource})")
        else:
            self._status.update(f"{self.EXPORT_MSG}{done} / {total}")

    def exported(self, total_instances: int) -> None:
        self._stop()
        self.console.print(f"[green]✓[/green] {self.EXPORT_MSG}{total_instances} exported! 📤")
        self._start(self.ARCHIVE_MSG)

    def archived(self, path: str) -> None:
        self._stop()
        self.console.print(f'[green]✓[/green] {self.ARCHIVE_MSG}archived to "{path}"! 📦')

    def failed(self, stage: str, message: str) -> None:
        current = self._message
        self._stop()
        self.console.print(f"[red]✗[/red] {current}Failed!")


@contextmanager
def cancel_on_signals(cancel: CancelToken) -> Iterator[None]:
    """Turn the first SIGINT/SIGTERM into a cancellation request.

    The default handlers are restored by the first signal, so a second
    Ctrl-C interrupts immediately.
    """
    signals = [signal.SIGINT, signal.SIGTERM]
    previous = {sig: signal.getsignal(sig) for sig in signals}

    def handler(signum, frame):
        logger.warning("cancellation requested", signal=signal.Signals(signum).name)
        cancel.cancel()
        for sig, old in previous.items():
            signal.signal(sig, old)

    for sig in signals:
        signal.signal(sig, handler)
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def print_summary(summary: ExportSummary) -> None:
    """Print exported counts per type."""
    table = Table(title=f"Crossplane {summary.control_plane.version}", show_footer=True)
    table.add_column("Type", footer="Total")
    table.add_column("Count", justify="right", footer=str(summary.total))
    for group_resource, count in summary.resource_counts.items():
        table.add_row(group_resource, str(count))
    console.print(table)


@click.command("export")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Archive file to create")
@click.option("--page-size", type=click.IntRange(min=1), help="Items per list request")
@click.option("--summary/--no-summary", default=False, help="Print exported counts per type")
@click.pass_context
def export(ctx: click.Context, output: str | None, page_size: int | None, summary: bool) -> None:
    """Export the Crossplane state of a cluster into a .tar.gz archive.

    Every instance of the Crossplane core types and of the types installed by
    Crossplane packages is written to the archive, along with per-type
    metadata and an export.yaml describing the export.
    """
    config: CLIConfig = ctx.obj["config"]
    config.override("output_archive", output)
    config.override("page_size", page_size)

    try:
        api_client = load_api_client(config.kubeconfig, config.context)
    except Exception as e:
        click.echo(f"Error: cannot load kubeconfig: {e}", err=True)
        sys.exit(1)

    console.print("Starting export...")
    progress = ConsoleProgress(console)
    cancel = CancelToken()
    try:
        with cancel_on_signals(cancel):
            progress.scanning()
            try:
                exporter = build_exporter(
                    api_client,
                    Options(output_archive=config.output_archive),
                    page_size=config.page_size,
                    progress=progress,
                )
            except Exception as e:
                progress.failed("discovery", str(e))
                click.echo(f"Error: cannot reach cluster: {e}", err=True)
                sys.exit(1)
            result = exporter.export(cancel)
    except ExportError as e:
        click.echo(f"Error: {e.describe()}", err=True)
        sys.exit(1)
    finally:
        api_client.close()

    if summary:
        print_summary(result)
    console.print("\nSuccessfully exported control plane state!")
