"""
ViterbiHMM: Viterbi decoding and Viterbi training for discrete HMMs

A Python library for finding the most likely hidden-state path of an
observation sequence and re-estimating model parameters from decoded paths.
"""

__version__ = "0.1.0"
__author__ = "ViterbiHMM Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .hmm import Observation, State, Segment, Path, ViterbiHMM

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "Observation",
    "State",
    "Segment",
    "Path",
    "ViterbiHMM",
    "__version__"
]
