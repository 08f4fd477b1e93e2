"""Dashboard Session.

Encrypted cookie session for the SEO dashboard: Google OAuth tokens and
the selected GA4 property / GSC site, with no server-side storage.
"""
from .version import __version__
from .data import SessionRecord
from .exceptions import (
    AuthenticationFailure,
    ConfigurationError,
    CorruptRecord,
    EnvelopeError,
    InvalidRecord,
    MalformedEnvelope,
    SessionStoreError,
)
from .vault import StoreConfig, TokenStore

__all__ = [
    "__version__",
    "SessionRecord",
    "StoreConfig",
    "TokenStore",
    "SessionStoreError",
    "ConfigurationError",
    "InvalidRecord",
    "EnvelopeError",
    "MalformedEnvelope",
    "AuthenticationFailure",
    "CorruptRecord",
]
