"""
Model persistence and metadata storage for Viterbi HMMs.

Models are stored as JSON definitions (states, ordered transition and
emission tables, alphabet) validated against a JSON schema, alongside a JSON
metadata file with training statistics.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import jsonschema

from ..exceptions import PersistenceError
from ..hmm.model import ViterbiHMM
from ..hmm.observation import Observation
from ..hmm.state import State
from ..logger import get_logger

logger = get_logger(__name__)

FORMAT_VERSION = 1

_PAYLOAD = {"type": ["string", "number", "boolean"]}

_ENTRY = {
    "type": "array",
    "items": [_PAYLOAD, {"type": "number"}],
    "minItems": 2,
    "maxItems": 2
}

# JSON schema for model definitions
MODEL_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "format_version": {"type": "integer", "const": FORMAT_VERSION},
        "initial_state": {"type": ["string", "null"]},
        "states": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "identifier": {"type": "string", "minLength": 1},
                    "transitions": {"type": "array", "items": _ENTRY},
                    "emissions": {"type": "array", "items": _ENTRY}
                },
                "required": ["identifier", "transitions", "emissions"]
            }
        },
        "registered_states": {
            "type": "array",
            "items": {"type": "string"}
        },
        "observations": {"type": "array", "items": _PAYLOAD}
    },
    "required": ["format_version", "initial_state", "states", "observations"],
    "additionalProperties": True
}


def _validate_definition(definition: Dict[str, Any]) -> None:
    try:
        jsonschema.validate(definition, MODEL_SCHEMA)
    except jsonschema.ValidationError as e:
        raise PersistenceError(f"Invalid model definition: {e.message}")


def model_to_dict(model: ViterbiHMM) -> Dict[str, Any]:
    """
    Convert a model into a JSON-serializable definition.
    
    Tables are written as [key, probability] pairs to keep their order and
    to allow non-string observation payloads.
    
    Raises:
        PersistenceError: If an observation payload is not a JSON string,
            number or boolean
    """
    states = model.states
    all_states = list(states)
    if model.initial_state is not None and model.initial_state not in all_states:
        all_states.insert(0, model.initial_state)
    
    definition = {
        'format_version': FORMAT_VERSION,
        'initial_state': model.initial_state.identifier if model.initial_state is not None else None,
        'states': [
            {
                'identifier': state.identifier,
                'transitions': [
                    [to_state.identifier, probability]
                    for to_state, probability in state.transition_probabilities.items()
                ],
                'emissions': [
                    [observation.payload, probability]
                    for observation, probability in state.emission_probabilities.items()
                ]
            }
            for state in all_states
        ],
        'registered_states': [state.identifier for state in states],
        'observations': [observation.payload for observation in model.observations]
    }
    
    _validate_definition(definition)
    
    return definition


def model_from_dict(definition: Dict[str, Any]) -> ViterbiHMM:
    """
    Build a model from a definition produced by `model_to_dict`.
    
    Raises:
        PersistenceError: If the definition is malformed or references an
            unknown state
    """
    _validate_definition(definition)
    
    states: Dict[str, State] = {}
    for entry in definition['states']:
        identifier = entry['identifier']
        if identifier in states:
            raise PersistenceError(f"Duplicate state identifier in definition: {identifier}")
        states[identifier] = State(identifier)
    
    for entry in definition['states']:
        state = states[entry['identifier']]
        for target, probability in entry['transitions']:
            if target not in states:
                raise PersistenceError(
                    f"State {state.identifier} transitions to unknown state {target}"
                )
            state.add_transition_probability(states[target], probability)
        for payload, probability in entry['emissions']:
            state.add_emission_probability(Observation(payload), probability)
    
    initial_identifier = definition['initial_state']
    if initial_identifier is not None and initial_identifier not in states:
        raise PersistenceError(f"Unknown initial state: {initial_identifier}")
    
    registered = definition.get('registered_states')
    if registered is None:
        registered = list(states)
    for identifier in registered:
        if identifier not in states:
            raise PersistenceError(f"Unknown registered state: {identifier}")
    
    return ViterbiHMM(
        initial_state=states[initial_identifier] if initial_identifier is not None else None,
        states=[states[identifier] for identifier in registered],
        observations=[Observation(payload) for payload in definition['observations']]
    )


class ModelPersistence:
    """
    Handles model serialization, deserialization, and metadata management.
    
    Each model is stored as `<name>.json` with a `<name>_meta.json` companion
    inside the models directory.
    """
    
    def __init__(self, models_dir: str = "models"):
        """
        Initialize ModelPersistence with target directory.
        
        Args:
            models_dir: Directory to store models and metadata (default: "models")
        """
        self.models_dir = Path(models_dir)
        self.models_dir.mkdir(parents=True, exist_ok=True)
        
        logger.debug(f"ModelPersistence initialized: {self.models_dir}")
    
    def _paths(self, name: str) -> Tuple[Path, Path]:
        safe_name = self._sanitize_filename(name)
        return (self.models_dir / f"{safe_name}.json",
                self.models_dir / f"{safe_name}_meta.json")
    
    def save_model(self,
                   name: str,
                   model: ViterbiHMM,
                   metadata: Optional[Dict[str, Any]] = None,
                   overwrite: bool = False) -> Tuple[str, str]:
        """
        Save a model definition and its metadata to disk.
        
        Args:
            name: Model name used for the file names
            model: Model to save
            metadata: Training metadata dictionary
            overwrite: Whether to overwrite existing files (default: False)
        
        Returns:
            Tuple of (model_path, metadata_path) for saved files
        
        Raises:
            PersistenceError: If saving fails or files exist without overwrite
        """
        model_path, metadata_path = self._paths(name)
        
        if not overwrite:
            if model_path.exists():
                raise PersistenceError(f"Model file already exists: {model_path}")
            if metadata_path.exists():
                raise PersistenceError(f"Metadata file already exists: {metadata_path}")
        
        serializable_metadata = self._prepare_metadata_for_serialization(metadata or {})
        serializable_metadata.update({
            'name': name,
            'saved_at': datetime.now().isoformat(),
            'model_file': model_path.name,
            'metadata_file': metadata_path.name,
            'model_class': model.__class__.__name__,
            'model_parameters': {
                'n_states': len(model.states),
                'n_observations': len(model.observations)
            }
        })
        
        # Serialize both files before writing either of them
        try:
            model_json = json.dumps(model_to_dict(model), indent=2, ensure_ascii=False)
            metadata_json = json.dumps(serializable_metadata, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to serialize model {name}: {e}")
        
        written = []
        try:
            for path, content in ((model_path, model_json), (metadata_path, metadata_json)):
                logger.debug(f"Saving to: {path}")
                written.append(path)
                path.write_text(content, encoding='utf-8')
        except OSError as e:
            for path in written:
                if path.exists():
                    path.unlink()
            raise PersistenceError(f"Failed to save model {name}: {e}")
        
        logger.info(f"Saved model {name}: {model_path}")
        
        return str(model_path), str(metadata_path)
    
    def load_model(self, name: str) -> Tuple[ViterbiHMM, Dict[str, Any]]:
        """
        Load a model definition and its metadata from disk.
        
        Returns:
            Tuple of (model, metadata); metadata is empty if the companion
            file is missing
        
        Raises:
            PersistenceError: If the model file is missing or malformed
        """
        model_path, metadata_path = self._paths(name)
        
        if not model_path.exists():
            raise PersistenceError(f"Model file not found: {model_path}")
        
        model = load_model_file(model_path)
        
        metadata = {}
        if metadata_path.exists():
            try:
                with open(metadata_path, 'r', encoding='utf-8') as f:
                    metadata = json.load(f)
            except json.JSONDecodeError as e:
                raise PersistenceError(f"Corrupt metadata file {metadata_path}: {e}")
        
        logger.info(f"Loaded model {name}")
        
        return model, metadata
    
    def list_models(self) -> List[str]:
        """Names of the models stored in the models directory."""
        return sorted(
            path.stem for path in self.models_dir.glob("*.json")
            if not path.stem.endswith("_meta")
        )
    
    def delete_model(self, name: str) -> bool:
        """
        Delete a model and its metadata.
        
        Returns:
            True if anything was deleted
        """
        deleted = False
        for path in self._paths(name):
            if path.exists():
                path.unlink()
                deleted = True
        
        if deleted:
            logger.info(f"Deleted model {name}")
        return deleted
    
    @staticmethod
    def _sanitize_filename(name: str) -> str:
        safe_name = re.sub(r'[^A-Za-z0-9_.-]+', '_', name.strip()).strip('._')
        if not safe_name:
            raise PersistenceError(f"Invalid model name: {name!r}")
        return safe_name
    
    def _prepare_metadata_for_serialization(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Drop or convert values that JSON cannot represent."""
        serializable = {}
        for key, value in metadata.items():
            if key == 'final_path':
                continue
            if isinstance(value, dict):
                serializable[key] = self._prepare_metadata_for_serialization(value)
            elif isinstance(value, (list, tuple)):
                serializable[key] = [float(v) if hasattr(v, 'item') else v for v in value]
            elif hasattr(value, 'item'):
                serializable[key] = value.item()
            else:
                serializable[key] = value
        return serializable


def load_model_file(model_path) -> ViterbiHMM:
    """
    Load a model definition from a JSON file.
    
    Raises:
        PersistenceError: If the file is missing, not JSON, or malformed
    """
    try:
        with open(model_path, 'r', encoding='utf-8') as f:
            definition = json.load(f)
    except FileNotFoundError:
        raise PersistenceError(f"Model file not found: {model_path}")
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Corrupt model file {model_path}: {e}")
    
    return model_from_dict(definition)
