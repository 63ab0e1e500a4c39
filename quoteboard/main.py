"""Command-line entry point: wires the multiplexer to the terminal renderer."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import click
from rich.console import Console

from .config import Setting, load_setting
from .errors import ConfigError, LayoutError, SubscribeError
from .market.multiplexer import SourceMultiplexer
from .render.paged_table import PagedTableRenderer

logger = logging.getLogger(__name__)


def status_line(failures: dict[str, str]) -> str:
    """Status text for the bottom line: failed sources first, else a hint."""
    if failures:
        return "; ".join(f"{name} unavailable: {reason}" for name, reason in failures.items())
    return "ctrl-c to quit"


def fit_status(text: str, width: int) -> str:
    """Cut the status text so it never wraps off the bottom screen line."""
    # The last cell of the bottom row stays empty so the terminal never scrolls
    return text[: max(width - 1, 0)]


class QuoteboardApp:
    """Owns the multiplexer and the renderer for one terminal session."""

    def __init__(self, setting: Setting, console: Console | None = None) -> None:
        self.setting = setting
        self.console = console or Console(highlight=False)
        self.multiplexer: SourceMultiplexer | None = None
        self.renderer: PagedTableRenderer | None = None
        self._status = ""
        self._shutdown_task: asyncio.Task | None = None

    async def __aenter__(self) -> QuoteboardApp:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        self.multiplexer = await SourceMultiplexer.create(self.setting)
        self._status = status_line(self.multiplexer.failures)

        width, height = self.console.size
        try:
            self.renderer = PagedTableRenderer(width, height, console=self.console)
            self.renderer.render(width, height, [], fit_status(self._status, width))
        except LayoutError:
            await self.multiplexer.aclose()
            raise
        self._install_signal_handlers()

    async def run(self) -> int:
        """Feed every record into the renderer until the stream ends."""
        count = 0
        async for record in self.multiplexer:
            self.renderer.refresh_stock(record)
            count += 1
        logger.info("Quote stream ended after %d updates", count)
        return count

    async def shutdown(self) -> None:
        self._remove_signal_handlers()
        if self._shutdown_task is not None:
            await self._shutdown_task
        if self.multiplexer is not None:
            await self.multiplexer.aclose()

    def resize(self) -> None:
        """Full redraw at the current terminal size."""
        width, height = self.console.size
        try:
            self.renderer.render(width, height, self.renderer.stocks, fit_status(self._status, width))
        except LayoutError as exc:
            logger.warning("Skipping redraw at %dx%d: %s", width, height, exc)

    def request_shutdown(self) -> None:
        if self._shutdown_task is None and self.multiplexer is not None:
            logger.info("Shutdown requested")
            self._shutdown_task = asyncio.get_running_loop().create_task(self.multiplexer.aclose())

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            if hasattr(signal, "SIGWINCH"):
                loop.add_signal_handler(signal.SIGWINCH, self.resize)
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_shutdown)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers not supported on this platform")

    def _remove_signal_handlers(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        for name in ("SIGWINCH", "SIGINT", "SIGTERM"):
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass


@click.command()
@click.option("--config", "config_path", default="config.yaml", show_default=True, help="YAML configuration file")
@click.option("--log-file", default="quoteboard.log", show_default=True, help="Log file path")
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
def cli(config_path: str, log_file: str, log_level: str) -> None:
    """Show live quotes for the configured watch-list."""
    # The table owns the terminal, so logs go to a file
    logging.basicConfig(
        filename=log_file,
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    async def main() -> None:
        setting = load_setting(config_path)
        async with QuoteboardApp(setting) as app:
            await app.run()

    try:
        asyncio.run(main())
    except (ConfigError, SubscribeError, LayoutError) as e:
        logger.error("Startup failed: %s", e)
        click.echo(f"quoteboard: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
