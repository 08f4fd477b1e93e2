import math
from typing import Any, Optional
from collections.abc import Iterator, Mapping, MutableMapping

from .exceptions import InvalidRecord


# Keys written by the OAuth callback and the dashboard selection routes.
TOKEN_FIELDS = (
    'refresh_token',
    'access_token',
    'expiry_date',
    'scope',
    'token_type',
    'google_email',
)
SELECTION_FIELDS = ('ga4_property_id', 'gsc_site')
KNOWN_FIELDS = TOKEN_FIELDS + SELECTION_FIELDS


def is_json_value(value: Any) -> bool:
    """Check if a value survives a JSON round trip unchanged.

    Returns True for None, bool, int, finite float, str and for lists and
    dicts (with str keys) built from those.
    """
    if isinstance(value, float):
        return math.isfinite(value)
    if value is None or isinstance(value, (bool, int, str)):
        return True
    if isinstance(value, dict):
        return all(
            isinstance(k, str) and is_json_value(v) for k, v in value.items()
        )
    if isinstance(value, list):
        return all(is_json_value(v) for v in value)
    return False


class SessionRecord(MutableMapping[str, Any]):
    """Session dict-like object.

    Holds the plaintext state carried by the encrypted session cookie:
    OAuth tokens, the Google account email and the selected GA4 property
    and GSC site. Every field is optional and nullable.

    Values must be JSON compatible; anything else raises InvalidRecord
    (a TypeError) on assignment. Writes mark the record as changed.
    """

    _internal_attrs = frozenset({'_data', '_changed'})

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        **kwargs: Any
    ) -> None:
        object.__setattr__(self, '_data', {})
        object.__setattr__(self, '_changed', False)
        if data is not None:
            for key, value in data.items():
                self._set_value(key, value)
        for key, value in kwargs.items():
            self._set_value(key, value)
        # a freshly loaded record is not dirty
        self._changed = False

    def __repr__(self) -> str:
        # values hold tokens; only show which keys are present
        return f'<SessionRecord keys={sorted(self._data)!r} changed={self._changed}>'

    def _set_value(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise InvalidRecord(f"Session keys must be str, got {type(key).__name__}")
        if not is_json_value(value):
            raise InvalidRecord(
                f"Session value for {key!r} is not JSON compatible: "
                f"{type(value).__name__}"
            )
        self._data[key] = value
        self._changed = True

    # --- Properties ---

    @property
    def empty(self) -> bool:
        return not self._data

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    @property
    def connected(self) -> bool:
        """True when Google tokens are present."""
        return bool(self._data.get('refresh_token') or self._data.get('access_token'))

    @property
    def has_refresh_token(self) -> bool:
        return bool(self._data.get('refresh_token'))

    def changed(self) -> None:
        self._changed = True

    def merge(self, partial: Mapping[str, Any]) -> "SessionRecord":
        """Return a new record with ``partial`` shallow-merged over this one.

        Keys in ``partial`` override, every other key is kept unchanged.
        """
        merged = SessionRecord(self._data)
        for key, value in partial.items():
            merged[key] = value
        return merged

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the record for serialization."""
        return dict(self._data)

    def invalidate(self) -> None:
        """Drop every field."""
        self._changed = True
        self._data = {}

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._set_value(key, value)

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._changed = True

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SessionRecord):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # mutable

    def __getattr__(self, key: str) -> Any:
        # Avoid infinite recursion for internal attributes
        if key.startswith('_'):
            raise AttributeError(key)
        if key in self._data:
            return self._data[key]
        if key in KNOWN_FIELDS:
            return None
        raise AttributeError(key)

    def __setattr__(self, key: str, value: Any) -> None:
        if key in self._internal_attrs or key.startswith('_'):
            object.__setattr__(self, key, value)
        elif isinstance(getattr(type(self), key, None), property):
            if getattr(type(self), key).fset is None:
                raise TypeError(f"{key!r} is a read-only SessionRecord attribute")
            object.__setattr__(self, key, value)
        else:
            self._set_value(key, value)
