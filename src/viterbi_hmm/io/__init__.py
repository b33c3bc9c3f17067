"""
Observation sequence construction module.

Converts raw symbols and sequence text into indexed observations.
"""

from .sequence import ObservationFactory, observations_from_symbols

__all__ = [
    "ObservationFactory",
    "observations_from_symbols"
]
