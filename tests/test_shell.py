"""Tests for the host shell: commands, tracking and layout restoration."""

import asyncio
import json

import httpx
import pytest

from apod_panel.data.apod_client import ApodClient
from apod_panel.shell import (
    CLOSE_COMMAND,
    OPEN_COMMAND,
    PALETTE_CATEGORY,
    TRACKER_NAMESPACE,
    WIDGET_ID,
    CommandRegistry,
    CommandSpec,
    PanelHost,
    WidgetTracker,
)
from apod_panel.widget import PictureWidget

IMAGE_BODY = {
    "date": "2020-05-10",
    "title": "Nebula",
    "explanation": "Gas and dust.",
    "media_type": "image",
    "url": "https://apod.nasa.gov/apod/image/nebula.jpg",
}


def make_host(calls: list[str] | None = None) -> PanelHost:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.params["date"])
        return httpx.Response(200, json=IMAGE_BODY)

    host = PanelHost(client=ApodClient(transport=httpx.MockTransport(handler)))
    host.activate()
    return host


class TestCommandRegistry:
    def test_register_and_execute(self):
        registry = CommandRegistry()
        ran: list[str] = []

        async def execute() -> None:
            ran.append("x")

        registry.add_command(CommandSpec(id="x:run", label="Run"), execute)
        assert registry.has_command("x:run")
        asyncio.run(registry.execute("x:run"))
        assert ran == ["x"]

    def test_duplicate_rejected(self):
        registry = CommandRegistry()

        async def noop() -> None:
            return None

        registry.add_command(CommandSpec(id="x", label="X"), noop)
        with pytest.raises(ValueError):
            registry.add_command(CommandSpec(id="x", label="X"), noop)

    def test_unknown_command(self):
        with pytest.raises(KeyError):
            asyncio.run(CommandRegistry().execute("missing"))


class TestPanelHost:
    def test_activate_registers_open(self):
        host = make_host()
        assert host.commands.has_command(OPEN_COMMAND)
        assert host.commands.command_for_keys("Accel Alt P") == OPEN_COMMAND
        assert host.commands.command_for_keys("Ctrl Q") is None
        palette = host.commands.commands_for_category(PALETTE_CATEGORY)
        assert [s.label for s in palette] == [
            "Random Astronomy Picture",
            "Close Astronomy Picture",
        ]

    def test_terminal_keys_bound(self):
        host = make_host()
        assert host.commands.command_for_keys("Enter") == OPEN_COMMAND
        assert host.commands.command_for_keys("p") == OPEN_COMMAND
        assert host.commands.command_for_keys("c") == CLOSE_COMMAND

    def test_close_command_disposes_widget(self):
        host = make_host()

        async def run() -> None:
            await host.commands.execute(OPEN_COMMAND)
            await host.commands.execute(CLOSE_COMMAND)

        asyncio.run(run())
        assert host.widget.is_disposed
        assert not host.attached
        assert host.active_id is None

    def test_open_creates_and_refreshes(self):
        host = make_host()
        asyncio.run(host.commands.execute(OPEN_COMMAND))
        assert host.widget is not None
        assert host.attached
        assert host.active_id == WIDGET_ID
        assert host.tracker.has(host.widget)
        assert host.widget.state.caption.startswith("Nebula")

    def test_open_reuses_live_widget(self):
        calls: list[str] = []
        host = make_host(calls)

        async def run() -> None:
            await host.open()
            first = host.widget
            await host.open()
            assert host.widget is first

        asyncio.run(run())
        assert len(calls) == 2

    def test_open_recreates_disposed_widget(self):
        host = make_host()

        async def run() -> None:
            await host.open()
            first = host.widget
            host.close()
            assert first.is_disposed
            assert not host.attached
            await host.open()
            assert host.widget is not first
            assert not host.widget.is_disposed

        asyncio.run(run())
        assert host.tracker.current is host.widget

    def test_surface_factory_used(self):
        surfaces: list = []

        class NullSurface:
            def set_link(self, href):
                pass

            async def load_image(self, src, title):
                return True

            def remove_image(self):
                pass

            def set_text(self, text):
                pass

        def factory():
            surfaces.append(NullSurface())
            return surfaces[-1]

        host = PanelHost(
            client=ApodClient(
                transport=httpx.MockTransport(
                    lambda request: httpx.Response(200, json=IMAGE_BODY)
                )
            ),
            surface_factory=factory,
        )
        host.activate()
        asyncio.run(host.open())
        assert len(surfaces) == 1
        assert host.widget.surface is surfaces[0]


class TestLayoutRestore:
    def test_save_and_restore(self, tmp_path):
        path = tmp_path / "layout.json"
        host = make_host()
        asyncio.run(host.open())
        host.tracker.save(path)

        saved = json.loads(path.read_text())
        assert saved == {"namespace": TRACKER_NAMESPACE, "widgets": [WIDGET_ID]}

        calls: list[str] = []
        restarted = make_host(calls)
        assert asyncio.run(restarted.restore(path)) is True
        assert restarted.widget is not None
        assert len(calls) == 1

    def test_closed_panel_not_restored(self, tmp_path):
        path = tmp_path / "layout.json"
        host = make_host()
        asyncio.run(host.open())
        host.close()
        host.tracker.save(path)

        calls: list[str] = []
        restarted = make_host(calls)
        assert asyncio.run(restarted.restore(path)) is False
        assert restarted.widget is None
        assert calls == []

    def test_missing_state_file(self, tmp_path):
        host = make_host()
        assert asyncio.run(host.restore(tmp_path / "nope.json")) is False

    def test_unreadable_state_file(self, tmp_path):
        path = tmp_path / "layout.json"
        path.write_text("{not json")
        assert WidgetTracker(TRACKER_NAMESPACE).load(path) is None

    def test_other_namespace_ignored(self, tmp_path):
        path = tmp_path / "layout.json"
        path.write_text(json.dumps({"namespace": "other", "widgets": ["w"]}))
        assert WidgetTracker(TRACKER_NAMESPACE).load(path) is None

    def test_tracker_current(self):
        tracker = WidgetTracker(TRACKER_NAMESPACE)
        assert tracker.current is None
        widget = PictureWidget()
        tracker.add(WIDGET_ID, widget)
        assert tracker.current is widget
        widget.dispose()
        assert tracker.current is None
        assert tracker.state().widgets == []
