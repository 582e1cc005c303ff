"""Progress and error output for backporter.

OperationReporter shows a rich spinner while a step runs and prints a
success or failure line once it is done. It never swallows or alters
exceptions raised inside an operation.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape

from ..errors import ApiError, error_details

SUCCESS_SYMBOL = "[green]✔[/green]"
FAILURE_SYMBOL = "[red]✖[/red]"
SELECTED_SYMBOL = "[green]?[/green]"


class Operation:
    """A running operation; finished exactly once with succeed() or fail()."""

    def __init__(self, reporter: "OperationReporter", text: Optional[str]):
        self._reporter = reporter
        self.text = text
        self.finished = False
        self._status = reporter.console.status(escape(text or ""))
        self._status.start()

    def update(self, text: str):
        self.text = text
        self._status.update(escape(text))

    def succeed(self, text: Optional[str] = None):
        self._finish()
        if text or self.text:
            self._reporter.print_line(SUCCESS_SYMBOL, text or self.text)

    def fail(self, text: Optional[str] = None):
        self._finish()
        if text or self.text:
            self._reporter.print_line(FAILURE_SYMBOL, text or self.text)

    def stop(self):
        self._finish()

    def _finish(self):
        if not self.finished:
            self._status.stop()
            self.finished = True


class OperationReporter:
    """Reports the start, progress and outcome of named operations.

    Usage:
        reporter = OperationReporter()
        with reporter.operation("Pushing branch"):
            push()

        with reporter.operation("0% Cloning repository") as op:
            clone(on_progress=lambda p: op.update(f"{p}% Cloning repository"))
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True, highlight=False)

    def start(self, text: Optional[str] = None) -> Operation:
        return Operation(self, text)

    @contextmanager
    def operation(self, text: Optional[str] = None) -> Iterator[Operation]:
        op = self.start(text)
        try:
            yield op
        except BaseException:
            op.fail()
            raise
        if not op.finished:
            op.succeed()

    def print_line(self, symbol: str, text: str):
        self.console.print(f"{symbol} {escape(text)}")

    def selected(self, label: str, value: str):
        self.console.print(
            f"{SELECTED_SYMBOL} [bold]{escape(label)}[/bold] [cyan]{escape(value)}[/cyan]"
        )


def echo_handled_error(message: str):
    click.secho(message, fg="red", err=True)


def echo_unexpected_error(e: BaseException):
    if isinstance(e, ApiError):
        click.echo(str(e), err=True)
        return
    for line in error_details(e):
        click.echo(line, err=True)
