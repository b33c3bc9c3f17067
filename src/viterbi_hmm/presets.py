"""
Ready-made example models.

- dice: fair/loaded die casino model over faces 1-6
- gc_patch: background vs. GC-rich patch model over nucleotides a/c/g/t
"""

from typing import Callable, Dict, List

from .hmm.model import ViterbiHMM
from .hmm.observation import Observation
from .hmm.state import State
from .io.sequence import observations_from_symbols


def dice_model() -> ViterbiHMM:
    """Start/Fair/Loaded model; the loaded die rolls a six half of the time."""
    faces = [Observation(face) for face in range(1, 7)]
    
    start = State("Start")
    fair = State("Fair")
    loaded = State("Loaded")
    
    start.add_transition_probability(fair, 0.48)
    start.add_transition_probability(loaded, 0.52)
    fair.add_transition_probability(fair, 0.83)
    fair.add_transition_probability(loaded, 0.17)
    loaded.add_transition_probability(fair, 0.4)
    loaded.add_transition_probability(loaded, 0.6)
    
    for face in faces:
        fair.add_emission_probability(face, 1 / 6)
        loaded.add_emission_probability(face, 0.5 if face.payload == 6 else 0.1)
    
    return ViterbiHMM(start, [start, fair, loaded], faces)


def dice_observations() -> List[Observation]:
    return observations_from_symbols([3, 1, 6, 6, 6, 4])


def gc_patch_model() -> ViterbiHMM:
    """Start/Background/GCPatch model over nucleotides."""
    nucleotides = {symbol: Observation(symbol) for symbol in "acgt"}
    
    start = State("Start")
    background = State("Background")
    gc_patch = State("GCPatch")
    
    start.add_transition_probability(background, 0.9999)
    start.add_transition_probability(gc_patch, 0.0001)
    background.add_transition_probability(background, 0.9999)
    background.add_transition_probability(gc_patch, 0.0001)
    gc_patch.add_transition_probability(background, 0.01)
    gc_patch.add_transition_probability(gc_patch, 0.99)
    
    for symbol, observation in nucleotides.items():
        background.add_emission_probability(observation, 0.25)
        gc_patch.add_emission_probability(observation, 0.3 if symbol in "cg" else 0.2)
    
    return ViterbiHMM(start, [start, background, gc_patch], nucleotides.values())


PRESETS: Dict[str, Callable[[], ViterbiHMM]] = {
    'dice': dice_model,
    'gc_patch': gc_patch_model
}


def get_preset(name: str) -> ViterbiHMM:
    """
    Build a fresh preset model by name.
    
    Raises:
        KeyError: If the preset is unknown
    """
    try:
        return PRESETS[name]()
    except KeyError:
        raise KeyError(f"Unknown preset {name!r}; available: {', '.join(sorted(PRESETS))}")
