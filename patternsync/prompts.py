from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Prompter(Protocol):
    def confirm(self, message: str, *, default: bool = False) -> bool: ...

    def choose(self, message: str, choices: Sequence[str], *, default: str) -> str: ...


class RichPrompter:
    """Interactive prompts on the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console

    def confirm(self, message: str, *, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def choose(self, message: str, choices: Sequence[str], *, default: str) -> str:
        return Prompt.ask(message, choices=list(choices), default=default, console=self.console)


class NoPrompter:
    """Non-interactive runs: every question takes its default."""

    def confirm(self, message: str, *, default: bool = False) -> bool:
        return default

    def choose(self, message: str, choices: Sequence[str], *, default: str) -> str:
        return default
