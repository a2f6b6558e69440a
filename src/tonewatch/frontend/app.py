"""Main Textual app for the tonewatch tenant config panel."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Footer, Input, Static, Switch

from tonewatch.core.config import TenantConfig
from tonewatch.core.errors import ConfigValidationError, InvalidTenantError
from tonewatch.core.ports import TenantConfigPort

from .modals import unsaved_on_quit, unsaved_on_reload
from .state import PanelState

ACCENT = "#1972F5"


def _parse_number(raw: str) -> Any:
    # Unparseable input is passed through so validation reports it.
    try:
        return float(raw.strip())
    except ValueError:
        return raw


class ConfigPanelApp(App):
    """Edit one tenant's config through the same validated update as the API."""

    CSS = """
    Screen {
        background: #0f1521;
        color: #e8eef5;
    }

    #header {
        height: 6;
        padding: 1 4;
        border-bottom: solid #2a3446;
    }

    #header-right {
        content-align: right top;
        text-align: right;
    }

    #form {
        padding: 1 4;
    }

    .form-label {
        margin-top: 1;
        color: #9fb0c3;
    }

    #form-error {
        margin-top: 1;
        color: #ff6b6b;
    }

    .status-error {
        color: #ff6b6b;
    }

    .status-modified {
        color: #f5c542;
    }

    .modal-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        border: round #2a3446;
        background: #16202e;
    }
    """

    BINDINGS = [
        ("ctrl+s", "save_config", "Save"),
        ("ctrl+r", "reload_config", "Reload"),
        ("q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    def __init__(self, store: TenantConfigPort, tenant_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.tenant_id = tenant_id
        self.panel_state = PanelState(tenant_id)

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal():
                with Vertical():
                    yield Static(self._title_text(), id="title")
                    yield Static(f"tenant: {self.tenant_id}", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status")
                    yield Horizontal(
                        Button("Save", id="save-btn"),
                        Button("Reload", id="reload-btn"),
                    )

        with Vertical(id="form"):
            yield Static("alertTag", classes="form-label")
            yield Input(placeholder="profanity-alert", id="alert-tag")
            yield Static("negativeThreshold (comparative, usually -5..0)", classes="form-label")
            yield Input(placeholder="0", id="negative-threshold")
            yield Static("toxicityThreshold (0..1)", classes="form-label")
            yield Input(placeholder="0.9", id="toxicity-threshold")
            yield Static("notificationEnabled", classes="form-label")
            yield Switch(id="notification-enabled")
            yield Static("notificationTarget (Slack webhook URL)", classes="form-label")
            yield Input(placeholder="https://hooks.slack.com/services/...", id="notification-target")
            yield Static("highlightMatches", classes="form-label")
            yield Switch(id="highlight-matches")
            yield Static("", id="form-error")
        yield Footer()

    def on_mount(self) -> None:
        self._load_config()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.action_save_config()
        elif event.button.id == "reload-btn":
            self.action_reload_config()

    def on_input_changed(self, event: Input.Changed) -> None:
        self._refresh_dirty()

    def on_switch_changed(self, event: Switch.Changed) -> None:
        self._refresh_dirty()

    def action_save_config(self) -> None:
        self.save()

    def action_reload_config(self) -> None:
        if self.panel_state.dirty:
            self.push_screen(unsaved_on_reload(), self._handle_reload_choice)
        else:
            self._load_config()

    def action_request_quit(self) -> None:
        if self.panel_state.dirty:
            self.push_screen(unsaved_on_quit(), self._handle_exit_choice)
        else:
            self.exit()

    def _handle_exit_choice(self, choice: str | None) -> None:
        if choice == "save":
            if self.save():
                self.exit()
        elif choice == "discard":
            self.exit()

    def _handle_reload_choice(self, choice: str | None) -> None:
        if choice == "reload":
            self._load_config()

    def _form_values(self) -> tuple:
        return (
            self.query_one("#alert-tag", Input).value,
            self.query_one("#negative-threshold", Input).value,
            self.query_one("#toxicity-threshold", Input).value,
            self.query_one("#notification-enabled", Switch).value,
            self.query_one("#notification-target", Input).value,
            self.query_one("#highlight-matches", Switch).value,
        )

    def collect_update(self) -> dict[str, Any]:
        """Translate the form into a partial update for the store."""

        tag, negative, toxicity, enabled, target, highlight = self._form_values()
        return {
            "alertTag": tag,
            "negativeThreshold": _parse_number(negative),
            "toxicityThreshold": _parse_number(toxicity),
            "notificationEnabled": enabled,
            "notificationTarget": target,
            "highlightMatches": highlight,
        }

    def _fill_form(self, config: TenantConfig) -> None:
        self.query_one("#alert-tag", Input).value = config.alert_tag
        self.query_one("#negative-threshold", Input).value = str(config.negative_threshold)
        self.query_one("#toxicity-threshold", Input).value = str(config.toxicity_threshold)
        self.query_one("#notification-enabled", Switch).value = config.notification_enabled
        self.query_one("#notification-target", Input).value = config.notification_target
        self.query_one("#highlight-matches", Switch).value = config.highlight_matches
        self.panel_state.mark_saved(self._form_values(), config.to_dict())

    def _load_config(self) -> None:
        try:
            config = self.store.get(self.tenant_id)
        except InvalidTenantError as exc:
            self._show_error(str(exc))
            return
        self._fill_form(config)
        self._set_form_error("")
        self._refresh_header()

    def save(self) -> bool:
        """Validate and persist the form; returns False when rejected."""

        try:
            config = self.store.update(self.tenant_id, self.collect_update())
        except ConfigValidationError as exc:
            self._show_error("\n".join(exc.errors))
            return False
        except InvalidTenantError as exc:
            self._show_error(str(exc))
            return False
        except OSError as exc:
            self._show_error(f"save failed: {exc.strerror or exc}")
            return False

        self._fill_form(config)
        self._set_form_error("")
        self._refresh_header()
        return True

    def _show_error(self, message: str) -> None:
        self.panel_state.error = message
        self._set_form_error(message)
        self._refresh_header()

    def _refresh_dirty(self) -> None:
        if not self.panel_state.loaded:
            return
        self.panel_state.refresh(self._form_values())
        self._refresh_header()

    def _set_form_error(self, message: str) -> None:
        self.query_one("#form-error", Static).update(message)

    def _refresh_header(self) -> None:
        status = self.query_one("#header-status", Static)
        save_btn = self.query_one("#save-btn", Button)

        status.remove_class("status-modified", "status-error")
        if self.panel_state.error:
            status.update("config: error")
            status.add_class("status-error")
        elif self.panel_state.dirty:
            status.update("config: modified *")
            status.add_class("status-modified")
        else:
            status.update("config: saved")

        save_btn.disabled = not self.panel_state.loaded or not self.panel_state.dirty

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("TONE", ACCENT),
            ("WATCH > Tenant Config", "bold"),
        )
