"""Factory for building feed sources from the setting."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .interface import FeedSource

if TYPE_CHECKING:
    from ..config import Setting

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    """Every supported provider. The value is the name used in the watch-list."""

    LONG_PORT = "long_port"
    MASSIVE = "massive"
    SIMULATOR = "simulator"


def source_class(kind: SourceKind) -> type[FeedSource]:
    """Map a provider kind to its FeedSource class.

    Provider modules are imported on demand so an unconfigured provider's
    library never has to be importable.
    """
    if kind is SourceKind.LONG_PORT:
        from .longport_client import LongPortSource

        return LongPortSource
    if kind is SourceKind.MASSIVE:
        from .massive_client import MassiveSource

        return MassiveSource
    if kind is SourceKind.SIMULATOR:
        from .simulator import SimulatorSource

        return SimulatorSource
    raise ValueError(f"unknown source kind: {kind!r}")


def configured_kinds(setting: Setting) -> list[SourceKind]:
    """Provider kinds that have a block in the setting, in declaration order."""
    return [kind for kind in SourceKind if getattr(setting, kind.value) is not None]


async def create_feed_source(kind: SourceKind, setting: Setting) -> FeedSource:
    """Build one source. Consumes its block of the setting; raises InitError."""
    source = await source_class(kind).create(setting)
    logger.info("Feed source ready: %s", kind.value)
    return source
