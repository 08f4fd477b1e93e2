"""
TokenStore — Encrypted session record carried in a single cookie.

Provides the public API of the encrypted session store:
- ``encrypt(record)`` / ``decrypt(envelope)``: envelope primitives
- ``read(request)``: decrypt the session cookie, ``None`` when absent or invalid
- ``write(response, record)``: encrypt and set the session cookie (full replace)
- ``update(request, response, partial)``: merge fields into the stored record
- ``clear(response)``: expire the session cookie

There is no server-side persistence: the cookie is the session.

Security Note:
    Never log plaintext or ciphertext values. Only log cookie names,
    operations and failure classes. A forged, stale or tampered cookie is
    reported to callers exactly like a missing one.
"""
import logging
from collections.abc import Mapping
from typing import Any, Optional

from aiohttp import web

from ..conf import COOKIE_PATH, COOKIE_SAMESITE
from ..data import SessionRecord
from ..exceptions import EnvelopeError
from .config import StoreConfig, derive_key
from .crypto import decrypt_record, encrypt_record

logger = logging.getLogger("dashboard.session")


class TokenStore:
    """Authenticated-encryption cookie store for a :class:`SessionRecord`.

    The key is derived once from ``config.secret`` and is read-only
    afterwards, so one instance can serve concurrent requests.
    Concurrent ``update()`` calls from the same client race; the last
    response to reach the browser wins.
    """

    def __init__(self, config: StoreConfig):
        self._config = config
        # raises ConfigurationError when the secret is empty
        self._key = derive_key(config.secret)
        self._backend = config.cipher_backend

    @classmethod
    def from_env(cls) -> "TokenStore":
        return cls(StoreConfig.from_env())

    @property
    def cookie_name(self) -> str:
        return self._config.cookie_name

    @property
    def config(self) -> StoreConfig:
        return self._config

    # ------------------------------------------------------------------
    # Envelope primitives
    # ------------------------------------------------------------------

    def encrypt(self, record: Mapping[str, Any]) -> str:
        """Encrypt a record into a cookie-safe envelope.

        Raises:
            InvalidRecord: If the record is not JSON serializable.
        """
        if isinstance(record, SessionRecord):
            record = record.to_dict()
        return encrypt_record(record, self._key, self._backend)

    def decrypt(self, envelope: str) -> SessionRecord:
        """Decrypt an envelope back into a record.

        Raises:
            MalformedEnvelope, AuthenticationFailure, CorruptRecord
        """
        return SessionRecord(decrypt_record(envelope, self._key, self._backend))

    # ------------------------------------------------------------------
    # Cookie helpers
    # ------------------------------------------------------------------

    def _set_cookie(self, response: web.StreamResponse, value: str, max_age: int) -> None:
        response.set_cookie(
            self._config.cookie_name,
            value,
            max_age=max_age,
            path=COOKIE_PATH,
            secure=self._config.secure,
            httponly=True,
            samesite=COOKIE_SAMESITE,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read(self, request: web.BaseRequest) -> Optional[SessionRecord]:
        """Return the session record from the request, or None.

        A missing cookie and any decrypt failure both mean "no session".
        """
        envelope = request.cookies.get(self._config.cookie_name)
        if not envelope:
            return None
        try:
            return self.decrypt(envelope)
        except EnvelopeError as err:
            logger.debug(
                "Ignoring invalid session cookie %s: %s",
                self._config.cookie_name, type(err).__name__,
            )
            return None

    def write(self, response: web.StreamResponse, record: Mapping[str, Any]) -> None:
        """Encrypt ``record`` and set it as the session cookie.

        Replaces the previous cookie entirely; use ``update()`` to merge.
        """
        envelope = self.encrypt(record)
        self._set_cookie(response, envelope, self._config.max_age)
        logger.debug(
            "Session cookie written: cookie=%s fields=%s",
            self._config.cookie_name, sorted(record.keys()),
        )

    def update(
        self,
        request: web.BaseRequest,
        response: web.StreamResponse,
        partial: Mapping[str, Any],
    ) -> SessionRecord:
        """Merge ``partial`` into the stored record and write it back.

        Fields missing from ``partial`` are preserved.

        Returns:
            The merged record that was written.
        """
        existing = self.read(request) or SessionRecord()
        merged = existing.merge(partial)
        self.write(response, merged)
        return merged

    def clear(self, response: web.StreamResponse) -> None:
        """Expire the session cookie on the client."""
        self._set_cookie(response, "", 0)
        logger.debug("Session cookie cleared: cookie=%s", self._config.cookie_name)
