"""Error types surfaced by layout-sync."""

import httpx


# Transport failures reach callers as the original httpx exception.
TransportError = httpx.HTTPError


class LayoutSyncError(Exception):
    """Base class for errors raised by layout-sync itself."""


class ConfigurationError(LayoutSyncError):
    """Site identity or transport missing; no request was attempted."""


class ParseError(LayoutSyncError):
    """The layouts payload could not be decoded into a catalog."""


class PersistenceError(LayoutSyncError):
    """Writing the catalog to the local store failed and was rolled back."""
