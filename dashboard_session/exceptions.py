"""Exception taxonomy for the encrypted session store and its collaborators."""


class SessionStoreError(Exception):
    """Base class for session store failures."""


class ConfigurationError(SessionStoreError):
    """A required setting (encryption secret, OAuth client) is missing."""


class InvalidRecord(SessionStoreError, TypeError):
    """The session record cannot be serialized to JSON."""


class EnvelopeError(SessionStoreError):
    """Base class for decrypt-side failures.

    ``TokenStore.read()`` collapses every subclass into "no session".
    """


class MalformedEnvelope(EnvelopeError):
    """Envelope is not valid base64url or is shorter than nonce + tag."""


class AuthenticationFailure(EnvelopeError):
    """Authentication tag did not verify (wrong key, truncation, tampering)."""


class CorruptRecord(EnvelopeError):
    """Decrypted bytes are not a JSON object."""


class GoogleAuthenticationError(Exception):
    """Google OAuth or API call failed."""


class GoogleNotConnected(GoogleAuthenticationError):
    """No refresh token is stored in the session."""
