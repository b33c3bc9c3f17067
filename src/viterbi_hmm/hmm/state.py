"""
Hidden states and their probability tables.
"""

from typing import Dict, Optional

from ..config import get_config
from .observation import Observation


def min_probability() -> float:
    """
    Probability reported for transitions and emissions missing from a table.
    
    Always positive so that log-space arithmetic stays finite.
    """
    value = get_config('hmm', 'min_probability')
    if value is None or value <= 0:
        return 5e-324
    return float(value)


class State:
    """
    Hidden state carrying transition and emission probability tables.
    
    States compare and hash by identifier only. Tables are stored as given;
    normalizing them is the caller's responsibility.
    """
    
    def __init__(self, identifier: str,
                 transitions: Optional[Dict['State', float]] = None,
                 emissions: Optional[Dict[Observation, float]] = None):
        if not identifier:
            raise ValueError("State identifier must be a non-empty string")
        
        self.identifier = identifier
        self._transitions: Dict['State', float] = dict(transitions or {})
        self._emissions: Dict[Observation, float] = dict(emissions or {})
    
    @property
    def transition_probabilities(self) -> Dict['State', float]:
        """Copy of the transition table in insertion order."""
        return dict(self._transitions)
    
    @property
    def emission_probabilities(self) -> Dict[Observation, float]:
        """Copy of the emission table in insertion order."""
        return dict(self._emissions)
    
    def transition_probability(self, to_state: 'State') -> float:
        return self._transitions.get(to_state, min_probability())
    
    def emission_probability(self, observation: Observation) -> float:
        return self._emissions.get(observation, min_probability())
    
    def add_transition_probability(self, to_state: 'State', probability: float) -> None:
        self._transitions[to_state] = float(probability)
    
    def add_emission_probability(self, observation: Observation, probability: float) -> None:
        self._emissions[observation] = float(probability)
    
    def clear(self) -> None:
        """Reset both tables to empty."""
        self._transitions = {}
        self._emissions = {}
    
    def to_char(self) -> str:
        return self.identifier[0].lower()
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return self.identifier == other.identifier
    
    def __hash__(self) -> int:
        return hash(self.identifier)
    
    def __str__(self) -> str:
        return self.identifier
    
    def __repr__(self) -> str:
        return f"State({self.identifier!r})"
