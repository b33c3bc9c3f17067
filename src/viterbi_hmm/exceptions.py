"""
Exception hierarchy for ViterbiHMM system.
"""


class ViterbiHMMError(Exception):
    """Base exception for ViterbiHMM system."""
    pass


class ModelDefinitionError(ViterbiHMMError):
    """Invalid model structure or malformed model definition."""
    pass


class DecodingError(ViterbiHMMError, ValueError):
    """Decoding precondition violations."""
    pass


class TrainingError(ViterbiHMMError):
    """Viterbi training loop failures."""
    pass


class SequenceError(ViterbiHMMError):
    """Raw symbol input that cannot become an observation sequence."""
    pass


class PersistenceError(ViterbiHMMError):
    """Model save/load failures."""
    pass
