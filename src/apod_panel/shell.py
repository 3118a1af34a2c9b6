"""Host shell: command registry, widget tracking and layout restoration."""

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from pydantic import BaseModel, Field

from apod_panel.config import PanelConfig
from apod_panel.data.apod_client import ApodClient
from apod_panel.widget import PictureWidget, PresentationSurface

logger = logging.getLogger(__name__)

OPEN_COMMAND = "apod:open"
OPEN_LABEL = "Random Astronomy Picture"
OPEN_KEYS = ["Accel Alt P", "Enter", "p"]
CLOSE_COMMAND = "apod:close"
CLOSE_LABEL = "Close Astronomy Picture"
CLOSE_KEYS = ["c"]
PALETTE_CATEGORY = "Tutorial"
TRACKER_NAMESPACE = "apod"
WIDGET_ID = "apod-panel"


class CommandSpec(BaseModel):
    id: str
    label: str
    keys: list[str] = Field(default_factory=list)
    category: str = ""


class CommandRegistry:
    """Named async commands, reachable by id, key chord or palette category."""

    def __init__(self) -> None:
        self._specs: dict[str, CommandSpec] = {}
        self._handlers: dict[str, Callable[[], Awaitable[None]]] = {}

    def add_command(
        self, spec: CommandSpec, execute: Callable[[], Awaitable[None]]
    ) -> None:
        if spec.id in self._specs:
            raise ValueError(f"Command already registered: {spec.id}")
        self._specs[spec.id] = spec
        self._handlers[spec.id] = execute

    def has_command(self, command_id: str) -> bool:
        return command_id in self._specs

    def command_for_keys(self, keys: str) -> str | None:
        for spec in self._specs.values():
            if keys in spec.keys:
                return spec.id
        return None

    def commands_for_category(self, category: str) -> list[CommandSpec]:
        return [s for s in self._specs.values() if s.category == category]

    async def execute(self, command_id: str) -> None:
        # KeyError for unknown ids
        handler = self._handlers[command_id]
        logger.debug("Executing command %s", command_id)
        await handler()


class TrackerState(BaseModel):
    namespace: str
    widgets: list[str] = Field(default_factory=list)


class WidgetTracker:
    """Remembers the open widget so the layout can be restored later."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._widgets: dict[str, PictureWidget] = {}

    def add(self, widget_id: str, widget: PictureWidget) -> None:
        self._widgets[widget_id] = widget

    def has(self, widget: PictureWidget) -> bool:
        return any(w is widget for w in self._widgets.values())

    @property
    def current(self) -> PictureWidget | None:
        live = [w for w in self._widgets.values() if not w.is_disposed]
        return live[-1] if live else None

    def state(self) -> TrackerState:
        return TrackerState(
            namespace=self.namespace,
            widgets=[wid for wid, w in self._widgets.items() if not w.is_disposed],
        )

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.state().model_dump_json(indent=2))
        logger.debug("Saved layout state to %s", path)

    def load(self, path: Path) -> TrackerState | None:
        if not path.exists():
            return None
        try:
            saved = TrackerState.model_validate(json.loads(path.read_text()))
        except (json.JSONDecodeError, ValueError):
            logger.warning("Ignoring unreadable layout state: %s", path)
            return None
        if saved.namespace != self.namespace:
            return None
        return saved


class PanelHost:
    """Minimal application shell hosting one picture widget."""

    def __init__(
        self,
        config: PanelConfig | None = None,
        surface_factory: Callable[[], PresentationSurface] | None = None,
        client: ApodClient | None = None,
    ) -> None:
        self.config = config or PanelConfig()
        self.client = client or ApodClient(self.config)
        self.commands = CommandRegistry()
        self.tracker = WidgetTracker(TRACKER_NAMESPACE)
        self._surface_factory = surface_factory
        self.widget: PictureWidget | None = None
        self.attached = False
        self.active_id: str | None = None

    def activate(self) -> None:
        """Register the open and close commands with the shell."""
        self.commands.add_command(
            CommandSpec(
                id=OPEN_COMMAND,
                label=OPEN_LABEL,
                keys=OPEN_KEYS,
                category=PALETTE_CATEGORY,
            ),
            self.open,
        )
        self.commands.add_command(
            CommandSpec(
                id=CLOSE_COMMAND,
                label=CLOSE_LABEL,
                keys=CLOSE_KEYS,
                category=PALETTE_CATEGORY,
            ),
            self._close_command,
        )
        logger.info("Picture panel extension activated")

    async def open(self) -> None:
        if self.widget is None or self.widget.is_disposed:
            surface = self._surface_factory() if self._surface_factory else None
            self.widget = PictureWidget(
                client=self.client, surface=surface, config=self.config
            )
            self.attached = False
        if not self.tracker.has(self.widget):
            self.tracker.add(WIDGET_ID, self.widget)
        if not self.attached:
            self.attached = True
            logger.debug("Attached %s to the main area", WIDGET_ID)

        await self.widget.refresh()
        self.active_id = WIDGET_ID

    def close(self) -> None:
        if self.widget is not None:
            self.widget.dispose()
        self.attached = False
        self.active_id = None

    async def _close_command(self) -> None:
        self.close()

    async def restore(self, path: Path) -> bool:
        """Reopen the panel if it was open when the state was saved."""
        saved = self.tracker.load(path)
        if saved is None or not saved.widgets:
            return False
        logger.info("Restoring %d widget(s) from %s", len(saved.widgets), path)
        await self.commands.execute(OPEN_COMMAND)
        return True

    async def shutdown(self) -> None:
        await self.client.aclose()
