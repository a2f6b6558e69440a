"""Confirmation dialogs for the config panel."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static

# (choice, label, variant)
QUIT_CHOICES = (
    ("save", "Save", "success"),
    ("discard", "Discard", "error"),
    ("cancel", "Cancel", "default"),
)
RELOAD_CHOICES = (
    ("reload", "Reload", "warning"),
    ("cancel", "Cancel", "default"),
)


class ConfirmScreen(ModalScreen[str]):
    """Ask how to handle unsaved edits; dismisses with the chosen key."""

    def __init__(self, title: str, body: str, choices: tuple[tuple[str, str, str], ...]) -> None:
        super().__init__()
        self._title = title
        self._body = body
        self._choices = choices

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self._title, classes="modal-title"),
            Static(self._body, classes="modal-body"),
            Horizontal(
                *(
                    Button(label, id=f"choice-{choice}", variant=variant)
                    for choice, label, variant in self._choices
                ),
                classes="modal-actions",
            ),
            classes="modal-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        choice = (event.button.id or "").removeprefix("choice-")
        self.dismiss(choice or "cancel")

    def key_escape(self) -> None:
        self.dismiss("cancel")


def unsaved_on_quit() -> ConfirmScreen:
    return ConfirmScreen("Unsaved changes", "Save changes before exit?", QUIT_CHOICES)


def unsaved_on_reload() -> ConfirmScreen:
    return ConfirmScreen("Reload config?", "Unsaved changes will be lost.", RELOAD_CHOICES)
