"""
Unit tests for model persistence.

Tests cover model definitions, schema validation, and saving/loading models
with metadata in a models directory.
"""

import json

import pytest

from viterbi_hmm.exceptions import PersistenceError
from viterbi_hmm.hmm import Observation, State, ViterbiHMM
from viterbi_hmm.train import (
    ModelPersistence,
    ViterbiTrainer,
    load_model_file,
    model_from_dict,
    model_to_dict
)


class TestModelDefinition:
    """Test conversion between models and JSON definitions."""
    
    def test_to_dict(self, dice):
        definition = model_to_dict(dice)
        
        assert definition['initial_state'] == "Start"
        assert [s['identifier'] for s in definition['states']] == ["Start", "Fair", "Loaded"]
        assert definition['states'][0]['transitions'] == [["Fair", 0.48], ["Loaded", 0.52]]
        assert definition['observations'] == [1, 2, 3, 4, 5, 6]
        json.dumps(definition)
    
    def test_restored_model_decodes_identically(self, dice, dice_rolls):
        restored = model_from_dict(model_to_dict(dice))
        
        expected = dice.decode(dice_rolls)
        path = restored.decode(dice_rolls)
        
        assert [str(s) for s in path] == [str(s) for s in expected]
        assert path.log_likelihood == expected.log_likelihood
        assert restored.describe() == dice.describe()
    
    def test_restored_model_shares_state_instances(self, dice):
        restored = model_from_dict(model_to_dict(dice))
        fair = restored.get_state("Fair")
        
        for target in fair.transition_probabilities:
            assert target is restored.get_state(target.identifier)
    
    def test_unregistered_initial_state(self):
        start, a = State("Start"), State("A")
        start.add_transition_probability(a, 1.0)
        model = ViterbiHMM(start, [a])
        
        restored = model_from_dict(model_to_dict(model))
        
        assert restored.initial_state.identifier == "Start"
        assert [s.identifier for s in restored.states] == ["A"]
    
    def test_schema_violation(self):
        with pytest.raises(PersistenceError, match="Invalid model definition"):
            model_from_dict({'format_version': 1, 'states': []})
    
    def test_unknown_transition_target(self, dice):
        definition = model_to_dict(dice)
        definition['states'][1]['transitions'].append(["Ghost", 0.1])
        
        with pytest.raises(PersistenceError, match="Ghost"):
            model_from_dict(definition)
    
    def test_unknown_initial_state(self, dice):
        definition = model_to_dict(dice)
        definition['initial_state'] = "Nowhere"
        
        with pytest.raises(PersistenceError, match="Nowhere"):
            model_from_dict(definition)
    
    def test_duplicate_state(self, dice):
        definition = model_to_dict(dice)
        definition['states'].append(dict(definition['states'][1]))
        
        with pytest.raises(PersistenceError, match="Duplicate"):
            model_from_dict(definition)
    
    
    def test_unencodable_payload_rejected(self):
        start, a = State("Start"), State("A")
        start.add_transition_probability(a, 1.0)
        a.add_emission_probability(Observation(("x", 1)), 1.0)
        model = ViterbiHMM(start, [a])
        
        with pytest.raises(PersistenceError, match="Invalid model definition"):
            model_to_dict(model)


class TestModelPersistence:
    """Test saving and loading models on disk."""
    
    def test_save_and_load(self, tmp_path, dice, dice_rolls):
        persistence = ModelPersistence(str(tmp_path / "models"))
        stats = ViterbiTrainer(max_iterations=2).fit(dice, dice_rolls)
        
        model_path, metadata_path = persistence.save_model("dice", dice, stats)
        model, metadata = persistence.load_model("dice")
        
        assert model_path.endswith("dice.json")
        assert metadata_path.endswith("dice_meta.json")
        assert model.describe() == dice.describe()
        assert metadata['iterations'] == 2
        assert metadata['model_class'] == "ViterbiHMM"
        assert 'final_path' not in metadata
        assert 'saved_at' in metadata
    
    def test_overwrite_protection(self, tmp_path, dice):
        persistence = ModelPersistence(str(tmp_path))
        persistence.save_model("dice", dice)
        
        with pytest.raises(PersistenceError, match="already exists"):
            persistence.save_model("dice", dice)
        
        persistence.save_model("dice", dice, overwrite=True)
    
    def test_load_missing(self, tmp_path):
        with pytest.raises(PersistenceError, match="not found"):
            ModelPersistence(str(tmp_path)).load_model("missing")
    
    def test_load_corrupt_file(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")
        
        with pytest.raises(PersistenceError, match="Corrupt"):
            ModelPersistence(str(tmp_path)).load_model("broken")
    
    def test_list_and_delete(self, tmp_path, dice, gc_model):
        persistence = ModelPersistence(str(tmp_path))
        persistence.save_model("dice", dice)
        persistence.save_model("gc patch", gc_model)
        
        assert persistence.list_models() == ["dice", "gc_patch"]
        
        assert persistence.delete_model("dice") is True
        assert persistence.delete_model("dice") is False
        assert persistence.list_models() == ["gc_patch"]
    
    def test_invalid_name(self, tmp_path, dice):
        with pytest.raises(PersistenceError):
            ModelPersistence(str(tmp_path)).save_model("...", dice)
    
    def test_load_model_file(self, tmp_path, gc_model):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(model_to_dict(gc_model)))
        
        assert load_model_file(path).describe() == gc_model.describe()
    
    def test_tuple_payload_fails_at_save_time(self, tmp_path):
        start, a = State("Start"), State("A")
        start.add_transition_probability(a, 1.0)
        model = ViterbiHMM(start, [a], [Observation(("x", 1))])
        persistence = ModelPersistence(str(tmp_path))
        
        with pytest.raises(PersistenceError, match="Invalid model definition"):
            persistence.save_model("m", model)
        
        assert persistence.list_models() == []
    
    def test_failed_save_leaves_no_files(self, tmp_path):
        start, a = State("Start"), State("A")
        start.add_transition_probability(a, 1.0)
        a.add_emission_probability(Observation(complex(1, 2)), 1.0)
        model = ViterbiHMM(start, [a])
        persistence = ModelPersistence(str(tmp_path))
        
        with pytest.raises(PersistenceError):
            persistence.save_model("m", model)
        
        assert list(tmp_path.iterdir()) == []
    
    def test_failed_metadata_leaves_no_files(self, tmp_path, dice):
        persistence = ModelPersistence(str(tmp_path))
        
        with pytest.raises(PersistenceError, match="serialize"):
            persistence.save_model("dice", dice, metadata={'owner': object()})
        
        assert list(tmp_path.iterdir()) == []
        
        # Nothing stale blocks a later save
        persistence.save_model("dice", dice)
        assert persistence.list_models() == ["dice"]
