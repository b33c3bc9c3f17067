"""
Decoded paths and the count statistics used for Viterbi training.

A path is an ordered list of segments over one observation sequence. Besides
rendering, it reports relative transition and emission frequencies observed
along its segments, which `ViterbiHMM.train` writes back into the model.
"""

from collections import Counter
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..config import get_config
from .observation import Observation
from .segment import Segment
from .state import State

TransitionKey = Tuple[State, State]
EmissionKey = Tuple[State, Observation]


class Path:
    """
    Sequence of segments describing how a state path covers an observation
    sequence, together with its log-likelihood.
    """
    
    def __init__(self, observations: Optional[Sequence[Observation]] = None,
                 log_likelihood: float = float('-inf'),
                 segments: Optional[Sequence[Segment]] = None):
        self.observations: List[Observation] = list(observations or [])
        self.log_likelihood = log_likelihood
        self._segments: List[Segment] = []
        if segments:
            self.set_segments(segments)
    
    @property
    def segments(self) -> List[Segment]:
        """Segments sorted by their ordering key."""
        return list(self._segments)
    
    def set_segments(self, segments: Sequence[Segment]) -> None:
        self._segments = sorted(segments, key=Segment.sort_key)
    
    def add_segment(self, segment: Segment) -> None:
        self._segments.append(segment)
        self._segments.sort(key=Segment.sort_key)
    
    def filter(self, state_identifier: str) -> 'Path':
        """
        Build a new path holding only the segments of one state.
        
        Args:
            state_identifier: Identifier of the state to keep
        
        Returns:
            Path sharing this path's observations and log-likelihood
        """
        return Path(
            self.observations,
            self.log_likelihood,
            [segment for segment in self._segments
             if segment.state.identifier == state_identifier]
        )
    
    def total_length(self) -> int:
        """Number of observation positions covered by the segments."""
        return sum(len(segment) for segment in self._segments)
    
    def state_sequence(self) -> List[State]:
        """Expand segments into one state per covered observation position."""
        states = []
        for segment in self._segments:
            states.extend([segment.state] * len(segment))
        return states
    
    def transition_counts(self) -> Dict[TransitionKey, float]:
        """
        Relative transition frequencies observed along the path.
        
        Each pair of adjacent segments contributes one transition from the
        earlier state to the later one; a segment spanning k positions beyond
        its first contributes k self-transitions. Counts are divided by the
        total number of transitions observed out of the from-state.
        
        Returns:
            Mapping of (from_state, to_state) to probability
        """
        counts: Counter = Counter()
        previous = None
        for segment in self._segments:
            if previous is not None:
                counts[(previous.state, segment.state)] += 1
            
            self_transitions = segment.last_index - segment.first_index
            if self_transitions > 0:
                counts[(segment.state, segment.state)] += self_transitions
            
            previous = segment
        
        totals: Counter = Counter()
        for (from_state, _), count in counts.items():
            totals[from_state] += count
        
        return {
            key: count / totals[key[0]]
            for key, count in counts.items()
        }
    
    def emission_counts(self) -> Dict[EmissionKey, float]:
        """
        Relative emission frequencies observed along the path.
        
        For each segment, the observations at indices first_index up to but
        excluding last_index are counted against the segment's state.
        
        Returns:
            Mapping of (state, observation) to probability; observations are
            returned without a sequence index
        """
        counts: Counter = Counter()
        totals: Counter = Counter()
        for segment in self._segments:
            state = segment.state
            for i in range(segment.first_index, segment.last_index):
                observation = self.observations[i].with_index(None)
                counts[(state, observation)] += 1
                totals[state] += 1
        
        return {
            key: count / totals[key[0]]
            for key, count in counts.items()
        }
    
    # Names used by the training step
    transition_probabilities = transition_counts
    emission_probabilities = emission_counts
    
    def to_verbose_string(self, width: Optional[int] = None) -> str:
        """
        Render each covered observation above the state it was assigned.
        
        Args:
            width: Characters per line (default: display.line_width config)
        
        Returns:
            Pairs of observation/state lines wrapped every `width` positions,
            pairs separated by a blank line
        """
        if width is None:
            width = get_config('display', 'line_width') or 50
        if width < 1:
            raise ValueError(f"width must be positive, got {width}")
        
        observation_chars = []
        state_chars = []
        for segment in self._segments:
            state_char = segment.to_char()
            for i in segment.indices():
                observation_chars.append(self.observations[i].to_char())
                state_chars.append(state_char)
        
        blocks = []
        for start in range(0, max(len(observation_chars), 1), width):
            blocks.append(
                ''.join(observation_chars[start:start + width]) + '\n' +
                ''.join(state_chars[start:start + width]) + '\n'
            )
        
        return '\n'.join(blocks)
    
    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)
    
    def __len__(self) -> int:
        return len(self._segments)
    
    def __str__(self) -> str:
        lines = [f"{i}. {segment}" for i, segment in enumerate(self._segments, 1)]
        lines.append('')
        lines.append(f"Log Likelihood: {self.log_likelihood}")
        return '\n'.join(lines)
    
    def __repr__(self) -> str:
        return (f"Path(segments={len(self._segments)}, "
                f"observations={len(self.observations)}, "
                f"log_likelihood={self.log_likelihood})")
