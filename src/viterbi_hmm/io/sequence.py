"""
Conversion of raw symbols into indexed observation sequences.

The factory only transforms text that has already been acquired; it never
opens files or network resources itself.
"""

from typing import Any, Iterable, List, Optional

from ..config import get_config
from ..exceptions import SequenceError
from ..hmm.observation import Observation
from ..logger import get_logger

logger = get_logger(__name__)

# Marks arguments that fall back to configuration
_FROM_CONFIG = object()


def observations_from_symbols(symbols: Iterable[Any]) -> List[Observation]:
    """
    Wrap arbitrary payloads into observations indexed by position.
    
    Args:
        symbols: Ordered payloads, e.g. die faces or characters
    
    Returns:
        List of observations with indices 0..n-1
    """
    return [Observation(symbol, i) for i, symbol in enumerate(symbols)]


class ObservationFactory:
    """
    Turns FASTA-style text into a sequence of single-character observations.
    
    Header lines are skipped, whitespace is removed and characters are
    lower-cased. Characters outside the alphabet are replaced by the fallback
    symbol, so every position yields exactly one observation.
    """
    
    def __init__(self,
                 alphabet: Optional[str] = None,
                 fallback_symbol=_FROM_CONFIG,
                 header_prefix: Optional[str] = None):
        """
        Args:
            alphabet: Accepted characters (default: sequence.alphabet config)
            fallback_symbol: Replacement for other characters
                (default: sequence.fallback_symbol config); None rejects them
                instead
            header_prefix: Lines starting with this prefix are skipped
                (default: sequence.skip_header_prefix config)
        
        Raises:
            SequenceError: If the alphabet is empty or the fallback symbol is
                not part of it
        """
        self.alphabet = (alphabet if alphabet is not None
                         else get_config('sequence', 'alphabet') or '').lower()
        self.fallback_symbol = (fallback_symbol if fallback_symbol is not _FROM_CONFIG
                                else get_config('sequence', 'fallback_symbol'))
        self.header_prefix = (header_prefix if header_prefix is not None
                              else get_config('sequence', 'skip_header_prefix'))
        
        if not self.alphabet:
            raise SequenceError("Alphabet must contain at least one symbol")
        if self.fallback_symbol is not None:
            self.fallback_symbol = self.fallback_symbol.lower()
            if self.fallback_symbol not in self.alphabet:
                raise SequenceError(
                    f"Fallback symbol {self.fallback_symbol!r} is not in alphabet {self.alphabet!r}"
                )
    
    def alphabet_observations(self) -> List[Observation]:
        """Alphabet observations suitable for registering on a model."""
        return [Observation(symbol) for symbol in self.alphabet]
    
    def clean(self, text: str) -> str:
        """Strip header lines and whitespace, and lower-case the remainder."""
        parts = []
        for line in text.splitlines():
            if not line:
                continue
            if self.header_prefix and line.startswith(self.header_prefix):
                continue
            parts.append(''.join(line.split()).lower())
        return ''.join(parts)
    
    def observation_sequence(self, text: str) -> List[Observation]:
        """
        Convert raw sequence text into indexed observations.
        
        Args:
            text: Sequence text, optionally in FASTA format
        
        Returns:
            List of observations with indices matching their position
        
        Raises:
            SequenceError: If no symbols remain, or a symbol is outside the
                alphabet and no fallback symbol is configured
        """
        content = self.clean(text)
        if not content:
            raise SequenceError("Sequence text contains no symbols")
        
        observations = []
        replaced = 0
        for i, char in enumerate(content):
            if char not in self.alphabet:
                if self.fallback_symbol is None:
                    raise SequenceError(f"Symbol {char!r} at position {i} is not in alphabet")
                char = self.fallback_symbol
                replaced += 1
            observations.append(Observation(char, i))
        
        if replaced:
            logger.debug(f"Replaced {replaced} symbols outside alphabet with "
                         f"{self.fallback_symbol!r}")
        
        return observations
