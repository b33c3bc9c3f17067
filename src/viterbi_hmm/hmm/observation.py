"""
Observation tokens for discrete HMMs.

An observation wraps an arbitrary payload drawn from a model's alphabet.
Equality is defined by a normalized key of the payload, never by the
position the observation occupies in a sequence.
"""

from typing import Any, Callable, Hashable, Optional


def default_key(payload: Any) -> Hashable:
    """Normalize a payload to a case-insensitive string key."""
    return str(payload).lower()


class Observation:
    """
    Observation token with read-only payload and index.
    
    Alphabet observations registered on a model carry no index; observations
    that belong to an actual sequence carry their zero-based position.
    """
    
    def __init__(self, payload: Any, index: Optional[int] = None,
                 key: Optional[Callable[[Any], Hashable]] = None):
        """
        Args:
            payload: Symbol drawn from the model alphabet
            index: Zero-based position within an observation sequence
            key: Function mapping the payload to its equality key
                (default: lower-cased string form)
        """
        if index is not None and index < 0:
            raise ValueError(f"Observation index must be non-negative, got {index}")
        
        self._payload = payload
        self._index = index
        self._key_func = key or default_key
        self._key = self._key_func(payload)
    
    @property
    def payload(self) -> Any:
        return self._payload
    
    @property
    def index(self) -> Optional[int]:
        return self._index
    
    @property
    def key(self) -> Hashable:
        """Normalized equality key of the payload."""
        return self._key
    
    def with_index(self, index: Optional[int]) -> 'Observation':
        """Return a copy of this observation bound to a sequence position (or to none)."""
        return Observation(self._payload, index, key=self._key_func)
    
    def to_char(self) -> str:
        """Single lower-case character used by fixed-width path renderings."""
        if self._payload is None:
            return ' '
        text = str(self._payload).lower()
        return text[0] if text else ' '
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, Observation):
            return NotImplemented
        return self._key == other._key
    
    def __hash__(self) -> int:
        return hash(self._key)
    
    def __str__(self) -> str:
        return str(self._payload)
    
    def __repr__(self) -> str:
        if self._index is None:
            return f"Observation({self._payload!r})"
        return f"Observation({self._payload!r}, index={self._index})"
