"""Token Store — Encrypted session state carried in a cookie.

Security Note (Threat Model):
    The whole session lives in the client's cookie. Confidentiality and
    integrity rest on a single operator secret; anyone holding it can read
    and forge sessions. Rotating the secret logs every user out, since
    envelopes issued under the old secret fail authentication.
"""

from .token_store import TokenStore
from .config import StoreConfig, derive_key, generate_secret

__all__ = [
    "TokenStore",
    "StoreConfig",
    "derive_key",
    "generate_secret",
]
