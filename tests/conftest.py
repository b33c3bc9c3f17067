"""
Test configuration and fixtures for ViterbiHMM.

This file contains pytest configuration and shared fixtures
for testing the ViterbiHMM system.
"""

import pytest

from viterbi_hmm.config import reset_config
from viterbi_hmm.hmm import Observation, State, ViterbiHMM
from viterbi_hmm.io import observations_from_symbols
from viterbi_hmm.presets import dice_model, dice_observations, gc_patch_model


@pytest.fixture(autouse=True)
def clean_config():
    """Restore default configuration after every test."""
    yield
    reset_config()


@pytest.fixture
def dice():
    """Fresh fair/loaded dice model."""
    return dice_model()


@pytest.fixture
def dice_rolls():
    """The roll sequence 3, 1, 6, 6, 6, 4."""
    return dice_observations()


@pytest.fixture
def gc_model():
    """Fresh Start/Background/GCPatch model."""
    return gc_patch_model()


@pytest.fixture
def nucleotides():
    """Nucleotide sequence with a long embedded GC-rich stretch."""
    text = "at" * 40 + "gcgcggcgcc" * 25 + "ta" * 40
    return observations_from_symbols(text)


@pytest.fixture
def twin_model():
    """Two indistinguishable states A and B emitting a single symbol."""
    x = Observation("x")
    start, a, b = State("Start"), State("A"), State("B")
    start.add_transition_probability(a, 0.5)
    start.add_transition_probability(b, 0.5)
    for source in (a, b):
        source.add_transition_probability(a, 0.5)
        source.add_transition_probability(b, 0.5)
        source.add_emission_probability(x, 1.0)
    return ViterbiHMM(start, [start, a, b], [x])


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
