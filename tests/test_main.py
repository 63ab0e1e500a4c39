"""Tests for the orchestrator and the CLI."""

import asyncio
import io

import pytest
from click.testing import CliRunner
from rich.console import Console

from quoteboard.config import Setting
from quoteboard.errors import LayoutError
from quoteboard.main import QuoteboardApp, cli, fit_status, status_line


def _console(width: int = 80, height: int = 12) -> Console:
    return Console(
        file=io.StringIO(),
        force_terminal=True,
        color_system=None,
        width=width,
        height=height,
        legacy_windows=False,
    )


def _setting() -> Setting:
    return Setting.model_validate(
        {
            "simulator": {"update_interval": 0.01},
            "massive": {"api_key": " "},
            "stock": [
                {"symbol": "AAPL.US", "name": "Apple", "source": "simulator"},
                {"symbol": "700.HK", "name": "Tencent", "source": "simulator"},
            ],
        }
    )


class TestStatusLine:
    def test_no_failures(self):
        assert status_line({}) == "ctrl-c to quit"

    def test_failures_listed(self):
        text = status_line({"long_port": "token missing", "massive": "bad key"})
        assert text == "long_port unavailable: token missing; massive unavailable: bad key"

    def test_fit_status_leaves_last_column_empty(self):
        assert fit_status("abcdef", 4) == "abc"
        assert fit_status("ab", 80) == "ab"
        assert fit_status("abc", 0) == ""


@pytest.mark.asyncio
class TestQuoteboardApp:
    async def test_quotes_flow_into_renderer(self, monkeypatch):
        monkeypatch.setenv("TERM", "xterm-256color")
        console = _console()
        app = QuoteboardApp(_setting(), console=console)
        await app.initialize()
        assert app.renderer.page_size == 10
        assert "massive unavailable" in console.file.getvalue()

        async def stop_when_both_seen():
            while len(app.renderer.stocks) < 2:
                await asyncio.sleep(0.01)
            app.request_shutdown()

        stopper = asyncio.create_task(stop_when_both_seen())
        count = await asyncio.wait_for(app.run(), timeout=5.0)
        await stopper
        await app.shutdown()

        assert count >= 2
        assert [r.symbol for r in app.renderer.stocks] == ["AAPL.US", "700.HK"]
        assert app.multiplexer.closed

    async def test_resize_redraws_with_current_stocks(self, monkeypatch, make_record):
        monkeypatch.setenv("TERM", "xterm-256color")
        console = _console()
        app = QuoteboardApp(Setting(), console=console)
        await app.initialize()
        app.renderer.refresh_stock(make_record(symbol="AAPL"))

        app.resize()
        assert [r.symbol for r in app.renderer.stocks] == ["AAPL"]
        await app.shutdown()

    async def test_status_line_cut_to_terminal_width(self, monkeypatch):
        """A long failure reason never wraps past the bottom line."""
        monkeypatch.setenv("TERM", "xterm-256color")
        console = _console(width=30, height=6)
        setting = Setting.model_validate({"massive": {"api_key": " "}})
        app = QuoteboardApp(setting, console=console)
        await app.initialize()

        output = console.file.getvalue()
        assert "massive unavailable: Massive " in output
        assert "Massive API" not in output

        console.file.truncate(0)
        console.file.seek(0)
        console.width = 40
        app.resize()
        output = console.file.getvalue()
        assert "massive unavailable: Massive API key " in output
        assert "configured" not in output
        await app.shutdown()

    async def test_narrow_terminal_fails_startup(self):
        app = QuoteboardApp(_setting(), console=_console(width=20))
        with pytest.raises(LayoutError):
            await app.initialize()
        assert app.multiplexer.closed


class TestCli:
    def test_missing_config_exits_1(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["--config", str(tmp_path / "missing.yaml"), "--log-file", str(tmp_path / "q.log")],
        )
        assert result.exit_code == 1
        assert "configuration file not found" in result.output

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--config" in result.output
