"""Error taxonomy for quoteboard."""

from __future__ import annotations


class QuoteboardError(Exception):
    """Base class for all quoteboard errors."""


class ConfigError(QuoteboardError):
    """The configuration document is missing or invalid."""


class InitError(QuoteboardError):
    """A feed source could not be constructed.

    Raised when the credential block is absent or the upstream handshake
    fails. Non-fatal: the multiplexer leaves that source out.
    """


class SubscribeError(QuoteboardError):
    """The upstream rejected a subscribe/unsubscribe, or the source is not ready."""


class LayoutError(QuoteboardError):
    """The terminal is too small to lay out the quote table."""
