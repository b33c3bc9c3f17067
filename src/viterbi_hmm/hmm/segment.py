"""
Contiguous runs of a single hidden state within a decoded path.
"""

from .state import State


class Segment:
    """
    Inclusive observation-index range during which a path stays in one state.
    
    The state is a reference to the model's own State instance, so statistics
    derived from segments always point back at the authoritative tables.
    """
    
    def __init__(self, state: State, first_index: int, last_index: int):
        if first_index < 0:
            raise ValueError(f"first_index must be non-negative, got {first_index}")
        if last_index < first_index:
            raise ValueError(
                f"last_index ({last_index}) must not precede first_index ({first_index})"
            )
        
        self.state = state
        self.first_index = first_index
        self.last_index = last_index
    
    def sort_key(self) -> int:
        """Ordering key; equal keys keep their relative order."""
        return self.first_index + self.last_index // 2
    
    def __lt__(self, other: 'Segment') -> bool:
        return self.sort_key() < other.sort_key()
    
    def __len__(self) -> int:
        return self.last_index - self.first_index + 1
    
    def indices(self) -> range:
        return range(self.first_index, self.last_index + 1)
    
    def to_char(self) -> str:
        if self.state is None:
            return ' '
        return self.state.to_char()
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return (self.state == other.state and
                self.first_index == other.first_index and
                self.last_index == other.last_index)
    
    def __hash__(self) -> int:
        return hash((self.state, self.first_index, self.last_index))
    
    def __str__(self) -> str:
        return f"{self.state.identifier} {self.first_index}:{self.last_index} ({len(self)})"
    
    def __repr__(self) -> str:
        return f"Segment({self.state.identifier!r}, {self.first_index}, {self.last_index})"
