"""
Training module.

Drive Viterbi training loops and persist trained models.
"""

from .trainer import ViterbiTrainer
from .persistence import ModelPersistence, model_to_dict, model_from_dict, load_model_file

__all__ = [
    "ViterbiTrainer",
    "ModelPersistence",
    "model_to_dict",
    "model_from_dict",
    "load_model_file"
]
