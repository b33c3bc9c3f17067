"""
Unit tests for observations and states.

Tests cover observation equality, immutability, index binding, state
identity and the minimum-probability lookup for absent table entries.
"""

import math

import pytest

from viterbi_hmm.config import set_config
from viterbi_hmm.hmm import Observation, State, min_probability


class TestObservation:
    """Test observation equality and immutability."""
    
    def test_case_insensitive_equality(self):
        assert Observation("A") == Observation("a")
        assert hash(Observation("A")) == hash(Observation("a"))
    
    def test_index_ignored_for_equality(self):
        assert Observation("g", 3) == Observation("g")
        assert Observation("g", 3) == Observation("g", 7)
    
    def test_different_payloads_not_equal(self):
        assert Observation("a") != Observation("c")
    
    def test_numeric_and_string_payloads_share_key(self):
        assert Observation(6) == Observation("6")
    
    def test_custom_key(self):
        parity = lambda payload: payload % 2
        
        assert Observation(2, key=parity) == Observation(4, key=parity)
        assert Observation(2, key=parity) != Observation(3, key=parity)
    
    def test_immutable(self):
        observation = Observation("a", 0)
        
        with pytest.raises(AttributeError):
            observation.payload = "c"
        with pytest.raises(AttributeError):
            observation.index = 4
    
    def test_with_index_returns_new_observation(self):
        observation = Observation("a")
        bound = observation.with_index(5)
        
        assert bound.index == 5
        assert observation.index is None
        assert bound == observation
    
    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            Observation("a", -1)
    
    def test_to_char(self):
        assert Observation("GCPatch").to_char() == "g"
        assert Observation(6).to_char() == "6"
        assert Observation(None).to_char() == " "
    
    def test_usable_as_dict_key(self):
        table = {Observation("a"): 0.4}
        
        assert table[Observation("A", 12)] == 0.4


class TestState:
    """Test state identity and probability tables."""
    
    def test_identity_by_identifier(self):
        assert State("Fair") == State("Fair")
        assert hash(State("Fair")) == hash(State("Fair"))
        assert State("Fair") != State("Loaded")
    
    def test_empty_identifier_rejected(self):
        with pytest.raises(ValueError):
            State("")
    
    def test_transition_lookup(self):
        fair, loaded = State("Fair"), State("Loaded")
        fair.add_transition_probability(loaded, 0.17)
        
        assert fair.transition_probability(loaded) == 0.17
        # Another instance with the same identifier is the same state
        assert fair.transition_probability(State("Loaded")) == 0.17
    
    def test_emission_lookup_is_case_insensitive(self):
        state = State("GCPatch")
        state.add_emission_probability(Observation("c"), 0.3)
        
        assert state.emission_probability(Observation("C", 10)) == 0.3
    
    def test_absent_entries_use_min_probability(self):
        state = State("Fair")
        
        transition = state.transition_probability(State("Loaded"))
        emission = state.emission_probability(Observation("x"))
        
        assert transition == min_probability()
        assert emission == min_probability()
        assert transition > 0
        assert math.isfinite(math.log(transition))
    
    def test_min_probability_configurable(self):
        set_config('hmm', 'min_probability', 1e-12)
        
        assert State("Fair").transition_probability(State("Loaded")) == 1e-12
    
    def test_min_probability_ignores_non_positive_config(self):
        set_config('hmm', 'min_probability', 0)
        
        assert min_probability() > 0
    
    def test_last_write_wins(self):
        state = State("Fair")
        state.add_transition_probability(State("Fair"), 0.5)
        state.add_transition_probability(State("Fair"), 0.83)
        state.add_emission_probability(Observation("1"), 0.1)
        state.add_emission_probability(Observation(1), 0.2)
        
        assert state.transition_probability(State("Fair")) == 0.83
        assert len(state.transition_probabilities) == 1
        assert state.emission_probability(Observation("1")) == 0.2
        assert len(state.emission_probabilities) == 1
    
    def test_no_implicit_normalization(self):
        state = State("Fair")
        state.add_transition_probability(State("Fair"), 3.0)
        
        assert state.transition_probability(State("Fair")) == 3.0
    
    def test_clear(self):
        state = State("Fair")
        state.add_transition_probability(State("Fair"), 0.83)
        state.add_emission_probability(Observation("1"), 0.1)
        
        state.clear()
        
        assert state.transition_probabilities == {}
        assert state.emission_probabilities == {}
        assert state.transition_probability(State("Fair")) == min_probability()
    
    def test_tables_are_copies(self):
        state = State("Fair")
        state.add_transition_probability(State("Fair"), 0.83)
        
        state.transition_probabilities[State("Loaded")] = 0.17
        
        assert State("Loaded") not in state.transition_probabilities
    
    def test_to_char(self):
        assert State("Background").to_char() == "b"
