"""
Discrete Hidden Markov Model with Viterbi decoding and Viterbi training.

The model holds a non-emitting initial state, the hidden states and the
observation alphabet. Decoding finds the single most likely state path for an
observation sequence in log space; training re-estimates every state's tables
from the relative frequencies observed along one decoded path.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import DecodingError, ModelDefinitionError
from ..logger import get_logger
from .observation import Observation
from .path import Path
from .segment import Segment
from .state import State

logger = get_logger(__name__)


class ViterbiHMM:
    """
    Discrete HMM over an explicit set of named states.
    
    Transition targets are resolved to the model's own State instances, so
    paths produced by `decode` refer back to the objects that `train` updates.
    """
    
    def __init__(self, initial_state: Optional[State] = None,
                 states: Optional[Iterable[State]] = None,
                 observations: Optional[Iterable[Observation]] = None):
        """
        Initialize ViterbiHMM.
        
        Args:
            initial_state: Non-emitting state every path starts from
            states: Model states; identifiers must be unique
            observations: Observation alphabet
        
        Raises:
            ModelDefinitionError: If two states share an identifier
        """
        self.initial_state = initial_state
        self._states: List[State] = []
        self._observations: List[Observation] = []
        
        if states:
            self.add_states(*states)
        if observations:
            self.add_observations(*observations)
    
    @property
    def states(self) -> List[State]:
        return list(self._states)
    
    @property
    def observations(self) -> List[Observation]:
        return list(self._observations)
    
    def add_states(self, *states: State) -> None:
        for state in states:
            if state in self._states:
                raise ModelDefinitionError(f"Duplicate state identifier: {state.identifier}")
            self._states.append(state)
    
    def add_observations(self, *observations: Observation) -> None:
        for observation in observations:
            if observation not in self._observations:
                self._observations.append(observation)
    
    def get_state(self, identifier: str) -> State:
        for state in self._states:
            if state.identifier == identifier:
                return state
        if self.initial_state is not None and self.initial_state.identifier == identifier:
            return self.initial_state
        raise KeyError(identifier)
    
    def _state_lookup(self) -> Dict[str, State]:
        lookup = {state.identifier: state for state in self._states}
        if self.initial_state is not None:
            lookup.setdefault(self.initial_state.identifier, self.initial_state)
        return lookup
    
    def _source_states(self) -> List[State]:
        sources = list(self._states)
        if self.initial_state is not None and self.initial_state not in sources:
            sources.insert(0, self.initial_state)
        return sources
    
    def transition_states(self) -> List[State]:
        """
        States reachable through at least one positive-probability transition.
        
        Returns:
            States in first-seen order, scanning each model state's transition
            table in insertion order
        """
        lookup = self._state_lookup()
        seen = set()
        result = []
        for state in self._source_states():
            for target, probability in state.transition_probabilities.items():
                if probability > 0 and target.identifier not in seen:
                    seen.add(target.identifier)
                    result.append(lookup.get(target.identifier, target))
        return result
    
    def validate(self) -> bool:
        """
        Check the structural invariants of the model.
        
        Raises:
            ModelDefinitionError: If the initial state is missing or a
                reachable state is not registered on the model
        """
        if self.initial_state is None:
            raise ModelDefinitionError("Model has no initial state")
        
        lookup = self._state_lookup()
        for state in self.transition_states():
            if state.identifier not in lookup:
                raise ModelDefinitionError(
                    f"State {state.identifier} is reachable but not part of the model"
                )
        
        logger.debug("Model structure validated successfully")
        return True
    
    def _bind_sequence(self, observations: Iterable) -> List[Observation]:
        sequence = []
        for i, observation in enumerate(observations):
            if not isinstance(observation, Observation):
                observation = Observation(observation, i)
            elif observation.index != i:
                observation = observation.with_index(i)
            sequence.append(observation)
        return sequence
    
    def _log_tables(self, states: Sequence[State],
                    sequence: Sequence[Observation]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Precompute log-probability tables for one decode call.
        
        Returns:
            Tuple of:
            - log_initial: log P(initial -> s) [n_states]
            - log_transitions: log P(f -> s) [n_states, n_states]
            - log_emissions: log P(o_t | s) [n_states, T]
        """
        symbols: Dict[Observation, int] = {}
        columns = [symbols.setdefault(observation, len(symbols)) for observation in sequence]
        
        with np.errstate(divide='ignore', invalid='ignore'):
            log_initial = np.log(np.array(
                [self.initial_state.transition_probability(s) for s in states], dtype=float
            ))
            log_transitions = np.log(np.array(
                [[f.transition_probability(s) for s in states] for f in states], dtype=float
            ))
            log_symbols = np.log(np.array(
                [[s.emission_probability(o) for o in symbols] for s in states], dtype=float
            ))
        
        return log_initial, log_transitions, log_symbols[:, columns]
    
    @staticmethod
    def _probability_matrix(log_initial: np.ndarray, log_transitions: np.ndarray,
                            log_emissions: np.ndarray) -> np.ndarray:
        """
        Fill the Viterbi matrix of best log-likelihoods.
        
        Every cell is prior + log(transition) + log(emission), evaluated in
        that order so that backtracking can reproduce it exactly.
        """
        n_states, T = log_emissions.shape
        probabilities = np.empty((n_states, T))
        probabilities[:, 0] = 0.0 + log_initial + log_emissions[:, 0]
        
        for t in range(1, T):
            candidates = (probabilities[:, t - 1][:, np.newaxis] + log_transitions
                          + log_emissions[:, t][np.newaxis, :])
            probabilities[:, t] = candidates.max(axis=0)
        
        return probabilities
    
    @staticmethod
    def _walk_probability_matrix(probabilities: np.ndarray, states: Sequence[State],
                                 sequence: Sequence[Observation],
                                 log_transitions: np.ndarray,
                                 log_emissions: np.ndarray) -> Path:
        """Backtrack through the matrix and compress the state path into segments."""
        T = probabilities.shape[1]
        
        # argmax keeps the first state on ties
        current = int(np.argmax(probabilities[:, T - 1]))
        log_likelihood = float(probabilities[current, T - 1])
        
        segments = []
        last_index = T - 1
        for t in range(T - 1, 0, -1):
            candidates = (probabilities[:, t - 1] + log_transitions[:, current]
                          + log_emissions[current, t])
            matches = np.flatnonzero(candidates == probabilities[current, t])
            previous = int(matches[0]) if matches.size else int(np.argmax(candidates))
            
            if previous != current:
                segments.append(Segment(states[current], t, last_index))
                last_index = t - 1
                current = previous
        
        segments.append(Segment(states[current], 0, last_index))
        
        return Path(sequence, log_likelihood, segments)
    
    def decode(self, observations: Iterable[Observation]) -> Path:
        """
        Find the most likely state path for an observation sequence.
        
        Args:
            observations: Ordered, non-empty observation sequence; raw payloads
                are wrapped into observations
        
        Returns:
            Path whose segments partition the sequence into state runs
        
        Raises:
            DecodingError: If the sequence is empty, the initial state is unset
                or no state is reachable through a transition
        """
        if self.initial_state is None:
            raise DecodingError("Cannot decode without an initial state")
        
        sequence = self._bind_sequence(observations)
        if not sequence:
            raise DecodingError("Cannot decode an empty observation sequence")
        
        states = self.transition_states()
        if not states:
            raise DecodingError("Model has no transition states to decode into")
        
        log_initial, log_transitions, log_emissions = self._log_tables(states, sequence)
        probabilities = self._probability_matrix(log_initial, log_transitions, log_emissions)
        path = self._walk_probability_matrix(
            probabilities, states, sequence, log_transitions, log_emissions
        )
        
        logger.debug(f"Decoded T={len(sequence)} over {len(states)} states: "
                     f"{len(path)} segments, log_likelihood={path.log_likelihood:.6f}")
        
        return path
    
    get_path = decode
    
    def path_log_likelihood(self, path: Path) -> float:
        """
        Sum the log-transition and log-emission terms along a full path.
        
        Raises:
            DecodingError: If the path does not cover its observation sequence
        """
        if self.initial_state is None:
            raise DecodingError("Cannot score a path without an initial state")
        
        state_sequence = path.state_sequence()
        if len(state_sequence) != len(path.observations) or not state_sequence:
            raise DecodingError(
                f"Path covers {len(state_sequence)} positions, "
                f"expected {len(path.observations)}"
            )
        
        with np.errstate(divide='ignore'):
            total = 0.0
            previous = self.initial_state
            for state, observation in zip(state_sequence, path.observations):
                total = (total + np.log(previous.transition_probability(state))
                         + np.log(state.emission_probability(observation)))
                previous = state
        
        return float(total)
    
    def train(self, path: Path,
              on_unvisited: Optional[Callable[[State], None]] = None) -> List[State]:
        """
        Re-estimate every non-initial state's tables from one decoded path.
        
        Each state is cleared and refilled with the relative transition and
        emission frequencies the path reports for it.
        
        Args:
            path: Path produced by `decode`
            on_unvisited: Called with each state that produced no transition or
                emission statistics, e.g. one never visited or visited only as
                a trailing one-position segment
        
        Returns:
            States left with empty tables
        """
        lookup = self._state_lookup()
        
        transitions: Dict[str, List[Tuple[State, float]]] = {}
        for (from_state, to_state), probability in path.transition_counts().items():
            transitions.setdefault(from_state.identifier, []).append((to_state, probability))
        
        emissions: Dict[str, List[Tuple[Observation, float]]] = {}
        for (state, observation), probability in path.emission_counts().items():
            emissions.setdefault(state.identifier, []).append((observation, probability))
        
        unvisited = []
        for state in self._states:
            if self.initial_state is not None and state == self.initial_state:
                continue
            
            state.clear()
            for to_state, probability in transitions.get(state.identifier, []):
                state.add_transition_probability(
                    lookup.get(to_state.identifier, to_state), probability
                )
            for observation, probability in emissions.get(state.identifier, []):
                state.add_emission_probability(observation, probability)
            
            if (state.identifier not in transitions
                    and state.identifier not in emissions):
                unvisited.append(state)
                logger.warning(f"State {state.identifier} produced no statistics in the path; "
                               f"its transition and emission tables are now empty")
                if on_unvisited is not None:
                    on_unvisited(state)
        
        logger.debug(f"Trained model from path with {len(path)} segments")
        
        return unvisited
    
    def describe(self) -> str:
        """Numbered listing of states with their non-empty tables."""
        lines = []
        for i, state in enumerate(self._source_states(), 1):
            parts = [f"{i}. {state.identifier}"]
            
            transitions = state.transition_probabilities
            if transitions:
                entries = ",".join(f"{s.identifier}={p}" for s, p in transitions.items())
                parts.append(f"(Transitions:{entries})")
            
            emissions = state.emission_probabilities
            if emissions:
                entries = ",".join(f"{o}={p}" for o, p in emissions.items())
                parts.append(f"(Emissions:{entries})")
            
            lines.append(" ".join(parts))
        
        return "\n".join(lines)
    
    def __str__(self) -> str:
        return self.describe()
    
    def __repr__(self) -> str:
        initial = self.initial_state.identifier if self.initial_state is not None else None
        return (f"ViterbiHMM(initial_state={initial!r}, n_states={len(self._states)}, "
                f"n_observations={len(self._observations)})")
