"""Instance choosers: numbered prompt and textual option list."""

from __future__ import annotations

import click
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Footer, OptionList, Static
from textual.widgets.option_list import Option

from panebridge.services.arbitrator import ChoiceOption, Chooser

PICKER_TITLE = "Select assistant instance"


def numbered_labels(options: list[ChoiceOption]) -> list[str]:
    return [f"{i}. {option.label}" for i, option in enumerate(options, start=1)]


class PromptChooser:
    """Prints numbered options to stderr and reads a number; 0 cancels."""

    async def choose(self, options: list[ChoiceOption]) -> int | None:
        click.echo(PICKER_TITLE + ":", err=True)
        for label in numbered_labels(options):
            click.echo(f"  {label}", err=True)
        try:
            choice = click.prompt(
                "Choice (0 to cancel)",
                type=click.IntRange(0, len(options)),
                default=0,
                show_default=False,
                err=True,
            )
        except click.Abort:
            return None
        return None if choice == 0 else choice - 1


class InstancePickerApp(App[int | None]):
    """Full-screen option list; Enter picks, Escape cancels."""

    CSS = """
    #picker-container {
        padding: 1 2;
    }
    .panel-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, options: list[ChoiceOption]) -> None:
        super().__init__()
        self._options = options

    def compose(self) -> ComposeResult:
        with Vertical(id="picker-container"):
            yield Static(PICKER_TITLE, classes="panel-title")
            yield OptionList(
                *[
                    Option(label, id=str(index))
                    for index, label in enumerate(numbered_labels(self._options))
                ],
                id="instance-picker",
            )
        yield Footer()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        option_id = event.option.id
        if option_id is not None:
            self.exit(int(option_id))

    def action_cancel(self) -> None:
        self.exit(None)


class TuiChooser:
    """Runs :class:`InstancePickerApp` and returns its selection."""

    async def choose(self, options: list[ChoiceOption]) -> int | None:
        app = InstancePickerApp(options)
        return await app.run_async()


def make_chooser(kind: str) -> Chooser:
    if kind == "tui":
        return TuiChooser()
    if kind == "prompt":
        return PromptChooser()
    raise ValueError(f"Unknown picker: {kind!r} (expected 'prompt' or 'tui')")
