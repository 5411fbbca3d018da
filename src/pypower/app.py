"""pypower - Main Textual application."""

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.logging import TextualHandler
from textual.widgets import Footer, Static

from pypower.config import Settings, load_settings
from pypower.controller import PowerController
from pypower.errors import ConfigError, SwitchTimeout
from pypower.events import Action, ActionEvent
from pypower.models import (
    PROFILES,
    BatterySnapshot,
    ChargeStatus,
    KnownProfile,
    ProfileKind,
    UnrecognizedProfile,
)
from pypower.state import PowerView

log = logging.getLogger(__name__)

HELP_TEXT = "j/k navigate  Enter select  r refresh  q quit"
PUMP_INTERVAL = 0.25


def battery_color(percent: int) -> str:
    """Gauge colour for a charge level."""
    if percent <= 20:
        return "red"
    if percent <= 50:
        return "yellow"
    return "green"


def format_duration(minutes: int, status: ChargeStatus) -> str:
    """Format a time estimate as e.g. ``2h 5m remaining``."""
    hours, mins = divmod(minutes, 60)
    suffix = "until full" if status is ChargeStatus.CHARGING else "remaining"
    return f"{hours}h {mins}m {suffix}"


def format_battery(view: PowerView) -> str:
    """Battery panel markup."""
    if view.battery_error is not None:
        return f"[red]Battery read failed:[/red] {escape(str(view.battery_error))}"

    battery: BatterySnapshot | None = view.battery
    if battery is None:
        return "Reading battery..."
    if not battery.present or battery.percent is None:
        return "[dim]No battery found[/dim]"

    percent = battery.percent
    color = battery_color(percent)
    bar_len = min(percent // 5, 20)
    bar = f"[{color}]{'█' * bar_len}[/{color}][dim]{'░' * (20 - bar_len)}[/dim]"

    line = f"\\[{bar}] {percent:3d}%  {battery.status.value.capitalize()}"
    if battery.minutes_remaining is not None:
        line += f"  ({format_duration(battery.minutes_remaining, battery.status)})"

    health = f"{battery.health}%" if battery.health is not None else "unknown"
    return f"{line}\nHealth: {health}"


def format_profiles(view: PowerView, governors: Mapping[ProfileKind, str]) -> str:
    """Profile panel markup: active profile line followed by the selectable list."""
    active = view.active_profile
    if active is None:
        header = "Active: reading..."
    elif isinstance(active, KnownProfile):
        header = f"Active: [green]{active.kind.label}[/green]"
    elif isinstance(active, UnrecognizedProfile):
        header = f"Active: [yellow]unrecognized governor '{escape(active.raw)}'[/yellow]"
    else:
        header = f"[red]Governor read failed:[/red] {escape(str(active.error))}"

    freq = f"{view.cpu_freq_mhz:.0f} MHz" if view.cpu_freq_mhz is not None else "n/a"
    lines = [f"{header}  [dim]CPU {freq}[/dim]", ""]

    for index, kind in enumerate(PROFILES):
        is_active = active == KnownProfile(kind)
        cursor = "▶" if index == view.cursor else " "
        marker = "●" if is_active else " "
        text = f"{cursor} {marker} {kind.label} ({escape(governors[kind])})"
        if is_active:
            text = f"[green]{text}[/green]"
        if index == view.cursor:
            text = f"[bold]{text}[/bold]"
        if view.pending_switch is not None and view.pending_switch.target is kind:
            text += "  [yellow]switching…[/yellow]"
        lines.append(text)
    return "\n".join(lines)


def format_status(view: PowerView) -> str:
    """Status line markup: last error, else last message, else key help."""
    error = view.last_error
    if isinstance(error, SwitchTimeout):
        return f"[yellow]Warning:[/yellow] {escape(str(error))}"
    if error is not None:
        return f"[red]Error:[/red] {escape(str(error))}"
    if view.message:
        return escape(view.message)
    return HELP_TEXT


class BatteryPanel(Static):
    """Battery gauge, status, time estimate and health."""

    DEFAULT_CSS = """
    BatteryPanel {
        height: auto;
        min-height: 4;
        padding: 0 1;
        border: round $primary;
        border-title-color: $text-muted;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Battery"

    def show(self, view: PowerView) -> None:
        self.update(format_battery(view))


class ProfilePanel(Static):
    """Active profile and the three selectable profiles."""

    DEFAULT_CSS = """
    ProfilePanel {
        height: auto;
        min-height: 7;
        padding: 0 1;
        border: round $primary;
        border-title-color: $text-muted;
    }
    """

    def __init__(self, governors: Mapping[ProfileKind, str], *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._governors = dict(governors)

    def on_mount(self) -> None:
        self.border_title = "Power Profile"

    def show(self, view: PowerView) -> None:
        self.update(format_profiles(view, self._governors))


class StatusLine(Static):
    """One-line status: errors, confirmations or key help."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        content-align: center middle;
        color: $text-muted;
    }
    """

    def show(self, view: PowerView) -> None:
        self.update(format_status(view))


class PyPowerApp(App):
    """Main pypower application."""

    TITLE = "pypower"
    SUB_TITLE = "Battery & CPU Power Profiles"

    CSS = """
    Screen {
        layout: vertical;
        padding: 1;
    }
    """

    BINDINGS = [
        Binding("up,k", "cursor_up", "Up", show=False),
        Binding("down,j", "cursor_down", "Down", show=False),
        ("enter,space", "select", "Select"),
        ("r", "refresh", "Refresh"),
        ("q,escape", "quit", "Quit"),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        controller: PowerController | None = None,
    ) -> None:
        """Initialize the PyPowerApp."""
        super().__init__()
        self._app_settings = settings or Settings()
        self._controller = controller or PowerController(self._app_settings)

    @property
    def controller(self) -> PowerController:
        return self._controller

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield BatteryPanel(id="battery")
        yield ProfilePanel(self._app_settings.governors, id="profiles")
        yield StatusLine(id="status")
        yield Footer()

    def on_mount(self) -> None:
        """Start refreshing once the app is mounted."""
        self._controller.start()
        self._render_view()
        self.set_interval(PUMP_INTERVAL, self._pump_controller)

    def _pump_controller(self) -> None:
        """Fold background results into the model and redraw."""
        self._controller.pump()
        self._sync_screen()

    def _send_action(self, action: Action) -> None:
        self._controller.dispatch(ActionEvent(action))
        self._sync_screen()

    def _sync_screen(self) -> None:
        if not self._controller.running:
            self.exit()
            return
        self._render_view()

    def _render_view(self) -> None:
        view = self._controller.view()
        try:
            self.query_one("#battery", BatteryPanel).show(view)
            self.query_one("#profiles", ProfilePanel).show(view)
            self.query_one("#status", StatusLine).show(view)
        except NoMatches:
            pass  # Not mounted yet, or already torn down

    def action_cursor_up(self) -> None:
        self._send_action(Action.CURSOR_UP)

    def action_cursor_down(self) -> None:
        self._send_action(Action.CURSOR_DOWN)

    def action_select(self) -> None:
        self._send_action(Action.SELECT)

    def action_refresh(self) -> None:
        self._send_action(Action.REFRESH)

    def action_quit(self) -> None:
        """Handle quit action: no further I/O, then leave the terminal."""
        self._send_action(Action.QUIT)


def setup_logging(log_file: Path | None = None, level: str = "INFO") -> None:
    """Route log records to the Textual devtools console and optionally a file."""
    handlers: list[logging.Handler] = [TextualHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def main() -> None:
    """Entry point for pypower application."""
    try:
        settings = load_settings()
        setup_logging(settings.log_file, settings.log_level)
    except (ConfigError, OSError) as exc:
        print(f"pypower: {exc}", file=sys.stderr)
        sys.exit(1)

    app = PyPowerApp(settings)
    try:
        app.run()
    except Exception as exc:
        # Textual has already restored the terminal by the time this propagates
        log.exception("Terminal session failed")
        print(f"pypower: cannot run terminal session: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(app.return_code or 0)


if __name__ == "__main__":
    main()
