"""
Hidden Markov Model module.

Discrete HMM with Viterbi decoding, segment paths and Viterbi training.
"""

from .observation import Observation
from .state import State, min_probability
from .segment import Segment
from .path import Path
from .model import ViterbiHMM

__all__ = [
    "Observation",
    "State",
    "min_probability",
    "Segment",
    "Path",
    "ViterbiHMM"
]
