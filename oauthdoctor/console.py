"""
Operator interaction for the OAuth doctor.

The diagnostic engine talks to the operator only through OperatorConsole,
so tests can feed scripted answers instead of a real terminal.
"""

import sys
from abc import ABC, abstractmethod

import click


class OperatorConsole(ABC):
    """Line-based operator interaction capability."""

    @abstractmethod
    def inform(self, message: str) -> None:
        """Show an informational message."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show an error message."""

    @abstractmethod
    def read_line(self, prompt: str) -> str:
        """Prompt for one line of input, without its trailing newline."""

    def pause(self, message: str) -> None:
        """Block until the operator acknowledges by pressing Enter."""
        self.read_line(message)


class TerminalConsole(OperatorConsole):
    """Console on stdin/stdout."""

    def inform(self, message: str) -> None:
        click.echo(message)

    def error(self, message: str) -> None:
        click.secho(message, fg="red", err=True)

    def read_line(self, prompt: str) -> str:
        """Read one line from stdin; raises click.Abort once stdin is exhausted."""
        click.echo(f"{prompt} >> ", nl=False)
        line = sys.stdin.readline()
        if not line:
            click.echo()
            raise click.Abort()
        return line.rstrip("\r\n")
