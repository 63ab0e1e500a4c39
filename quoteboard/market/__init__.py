"""Market data subsystem for quoteboard.

Public API:
    QuoteRecord          - Immutable quote snapshot dataclass
    FeedSource           - Abstract interface for upstream providers
    SourceKind           - Closed set of supported providers
    SourceMultiplexer    - Fan-in of all sources into one ordered stream
    create_feed_source   - Factory that builds one provider from the setting
"""

from .factory import SourceKind, create_feed_source
from .interface import FeedSource
from .models import QuoteRecord
from .multiplexer import SourceMultiplexer

__all__ = [
    "QuoteRecord",
    "FeedSource",
    "SourceKind",
    "SourceMultiplexer",
    "create_feed_source",
]
