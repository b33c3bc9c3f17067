"""
Unit tests for Viterbi training.

Tests cover table re-estimation from decoded paths, normalization,
idempotence on a stable path and handling of unvisited states.
"""

import logging
import math

import pytest

from viterbi_hmm.hmm import Observation, Path, Segment, State, ViterbiHMM, min_probability
from viterbi_hmm.io import observations_from_symbols
from viterbi_hmm.logger import get_logger, set_log_level


def table_snapshot(model):
    return {
        state.identifier: (
            {s.identifier: p for s, p in state.transition_probabilities.items()},
            {str(o): p for o, p in state.emission_probabilities.items()}
        )
        for state in model.states
    }


class TestTrain:
    """Test re-estimation of state tables."""
    
    def test_dice_tables(self, dice, dice_rolls):
        dice.train(dice.decode(dice_rolls))
        tables = table_snapshot(dice)
        
        assert tables["Fair"][0] == {"Fair": pytest.approx(0.5), "Loaded": pytest.approx(0.5)}
        assert tables["Fair"][1] == {"3": pytest.approx(1.0)}
        assert tables["Loaded"][0] == {"Loaded": pytest.approx(2 / 3), "Fair": pytest.approx(1 / 3)}
        assert tables["Loaded"][1] == {"6": pytest.approx(1.0)}
    
    def test_initial_state_untouched(self, dice, dice_rolls):
        before = table_snapshot(dice)["Start"]
        dice.train(dice.decode(dice_rolls))
        
        assert table_snapshot(dice)["Start"] == before
    
    def test_transition_targets_are_model_states(self, dice, dice_rolls):
        dice.train(dice.decode(dice_rolls))
        
        for state in dice.states:
            for target in state.transition_probabilities:
                assert target is dice.get_state(target.identifier)
    
    def test_normalization(self, gc_model, nucleotides):
        gc_model.train(gc_model.decode(nucleotides))
        
        for state in gc_model.states:
            if state == gc_model.initial_state:
                continue
            transitions = state.transition_probabilities
            emissions = state.emission_probabilities
            if transitions:
                assert math.fsum(transitions.values()) == pytest.approx(1.0)
            if emissions:
                assert math.fsum(emissions.values()) == pytest.approx(1.0)
    
    def test_emission_keys_have_no_index(self, gc_model, nucleotides):
        gc_model.train(gc_model.decode(nucleotides))
        
        for state in gc_model.states:
            for observation in state.emission_probabilities:
                assert observation.index is None
    
    def test_unvisited_state_left_empty(self, gc_model):
        observations = observations_from_symbols("aaaaaaaa")
        path = gc_model.decode(observations)
        pruned = []
        
        unvisited = gc_model.train(path, on_unvisited=pruned.append)
        
        gc_patch = gc_model.get_state("GCPatch")
        assert unvisited == [gc_patch]
        assert pruned == [gc_patch]
        assert gc_patch.transition_probabilities == {}
        assert gc_patch.emission_probabilities == {}
        assert gc_patch.emission_probability(Observation("c")) == min_probability()
    
    def test_train_from_handmade_path(self):
        start, a, b = State("Start"), State("A"), State("B")
        start.add_transition_probability(a, 1.0)
        model = ViterbiHMM(start, [start, a, b])
        path = Path(observations_from_symbols("xxyy"), -1.0, [
            Segment(State("A"), 0, 1),
            Segment(State("B"), 2, 3)
        ])
        
        model.train(path)
        
        assert a.transition_probabilities == {b: 0.5, a: 0.5}
        assert b.transition_probabilities == {b: 1.0}
        assert a.emission_probability(Observation("x")) == 1.0
        assert b.emission_probability(Observation("y")) == 1.0
        # Targets resolved to the model's own instances
        for target in a.transition_probabilities:
            assert target is a or target is b
    
    def test_trailing_single_position_segment_pruned(self):
        start, a, b = State("Start"), State("A"), State("B")
        start.add_transition_probability(a, 1.0)
        model = ViterbiHMM(start, [start, a, b])
        path = Path(observations_from_symbols("xxxy"), -1.0, [
            Segment(a, 0, 2),
            Segment(b, 3, 3)
        ])
        
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        model_logger = get_logger("viterbi_hmm.hmm.model")
        model_logger.addHandler(handler)
        set_log_level("INFO")
        try:
            unvisited = model.train(path)
        finally:
            model_logger.removeHandler(handler)
        
        assert unvisited == [b]
        assert a.transition_probabilities == {a: pytest.approx(2 / 3), b: pytest.approx(1 / 3)}
        assert b.transition_probabilities == {}
        warnings = [r.getMessage() for r in records if r.levelno == logging.WARNING]
        assert warnings == [
            "State B produced no statistics in the path; "
            "its transition and emission tables are now empty"
        ]


class TestTrainingIdempotence:
    """Training twice on a reproduced path leaves tables unchanged."""
    
    def test_stable_path(self, gc_model):
        observations = observations_from_symbols("aaaaaaaa")
        
        first = gc_model.decode(observations)
        gc_model.train(first)
        tables = table_snapshot(gc_model)
        
        second = gc_model.decode(observations)
        assert [(s.state.identifier, s.first_index, s.last_index) for s in second] == \
            [(s.state.identifier, s.first_index, s.last_index) for s in first]
        
        gc_model.train(second)
        
        assert table_snapshot(gc_model) == tables
    
    def test_repeated_train_same_path(self, dice, dice_rolls):
        path = dice.decode(dice_rolls)
        dice.train(path)
        tables = table_snapshot(dice)
        
        dice.train(path)
        
        assert table_snapshot(dice) == tables


class TestTrainingLoop:
    """Test decode/train cycles driven by the caller."""
    
    def test_gc_patch_ten_iterations(self, gc_model, nucleotides):
        for _ in range(10):
            path = gc_model.decode(nucleotides)
            
            assert math.isfinite(path.log_likelihood)
            assert path.filter("GCPatch").total_length() <= len(nucleotides)
            assert path.total_length() == len(nucleotides)
            
            gc_model.train(path)
    
    def test_dice_ten_iterations(self, dice, dice_rolls):
        for _ in range(10):
            path = dice.decode(dice_rolls)
            
            assert path.total_length() == len(dice_rolls)
            
            dice.train(path)
