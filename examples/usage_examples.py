"""
Examples of using the ViterbiHMM system.

This file demonstrates various ways to use the ViterbiHMM system,
from decoding a preset model to training and saving your own.
"""

import tempfile


def example_decode_dice():
    """Example of decoding dice rolls with the occasionally dishonest casino."""
    from viterbi_hmm.presets import dice_model, dice_observations
    
    print("Example: Decoding dice rolls")
    print("-" * 40)
    
    model = dice_model()
    path = model.decode(dice_observations())
    
    print(path)
    print()
    print(path.to_verbose_string())


def example_build_model():
    """Example of assembling a model by hand."""
    from viterbi_hmm import Observation, State, ViterbiHMM
    
    print("Example: Building a model")
    print("-" * 40)
    
    start = State("Start")
    rainy = State("Rainy")
    sunny = State("Sunny")
    
    start.add_transition_probability(rainy, 0.6)
    start.add_transition_probability(sunny, 0.4)
    rainy.add_transition_probability(rainy, 0.7)
    rainy.add_transition_probability(sunny, 0.3)
    sunny.add_transition_probability(rainy, 0.4)
    sunny.add_transition_probability(sunny, 0.6)
    
    walk, shop, clean = Observation("walk"), Observation("shop"), Observation("clean")
    rainy.add_emission_probability(walk, 0.1)
    rainy.add_emission_probability(shop, 0.4)
    rainy.add_emission_probability(clean, 0.5)
    sunny.add_emission_probability(walk, 0.6)
    sunny.add_emission_probability(shop, 0.3)
    sunny.add_emission_probability(clean, 0.1)
    
    model = ViterbiHMM(start, [rainy, sunny], [walk, shop, clean])
    model.validate()
    
    path = model.decode(["walk", "shop", "clean", "clean"])
    print(model)
    print()
    print(path)
    print()


def example_train_gc_patches():
    """Example of Viterbi training on a nucleotide sequence."""
    from viterbi_hmm.io import ObservationFactory
    from viterbi_hmm.presets import gc_patch_model
    from viterbi_hmm.train import ViterbiTrainer
    
    print("Example: Training on GC patches")
    print("-" * 40)
    
    text = ">example\n" + "at" * 40 + "gcgcggcgcc" * 25 + "ta" * 40
    observations = ObservationFactory().observation_sequence(text)
    
    def report(iteration, model, path):
        print(f"Iteration {iteration}: {len(path.filter('GCPatch'))} GC segments, "
              f"log likelihood {path.log_likelihood:.3f}")
    
    trainer = ViterbiTrainer(max_iterations=5, convergence_tolerance=1e-9, on_iteration=report)
    stats = trainer.fit(gc_patch_model(), observations)
    
    print(f"Converged: {stats['converged']} after {stats['iterations']} iterations")
    print()


def example_save_and_load():
    """Example of persisting a trained model."""
    from viterbi_hmm.presets import dice_model, dice_observations
    from viterbi_hmm.train import ModelPersistence, ViterbiTrainer
    
    print("Example: Saving and loading models")
    print("-" * 40)
    
    model = dice_model()
    stats = ViterbiTrainer(max_iterations=3).fit(model, dice_observations())
    
    with tempfile.TemporaryDirectory() as models_dir:
        persistence = ModelPersistence(models_dir)
        persistence.save_model("casino", model, stats)
        
        loaded, metadata = persistence.load_model("casino")
        print(f"Stored models: {persistence.list_models()}")
        print(f"Saved after {metadata['iterations']} iterations")
        print(loaded)
    print()


def example_cli_commands():
    """Example CLI commands."""
    print("Example: CLI Commands")
    print("-" * 40)
    
    cli_examples = [
        "# Show a preset model",
        "viterbi-hmm show --preset dice",
        "",
        "# Decode dice rolls",
        "viterbi-hmm decode 316664 --preset dice --show-symbols",
        "",
        "# Decode a FASTA file, keeping only GC patches",
        "viterbi-hmm decode genome.fna --file --state GCPatch",
        "",
        "# Train for 10 iterations and save the result",
        "viterbi-hmm train genome.fna --file -i 10 -o models/ -n genome",
        "",
        "# Decode with the saved model",
        "viterbi-hmm decode genome.fna --file -m models/genome.json",
    ]
    
    for example in cli_examples:
        if example == "":
            print()
        else:
            print(f"  {example}")
    print()


def example_custom_configuration():
    """Example of custom configuration."""
    from viterbi_hmm.config import get_config, set_config, update_config
    
    print("Example: Custom Configuration")
    print("-" * 40)
    
    print(f"Current line width: {get_config('display', 'line_width')}")
    
    set_config('display', 'line_width', 80)
    update_config({
        'training': {
            'max_iterations': 20,
            'convergence_tolerance': 1e-6
        },
        'sequence': {
            'fallback_symbol': None
        }
    })
    
    print("Configuration updated:")
    print("- Line width: 80")
    print("- Training iterations: 20")
    print("- Unknown symbols rejected instead of replaced")
    print()


def example_error_handling():
    """Example of proper error handling."""
    from viterbi_hmm.exceptions import DecodingError, SequenceError, ViterbiHMMError
    from viterbi_hmm.io import ObservationFactory
    from viterbi_hmm.presets import gc_patch_model
    
    print("Example: Error Handling")
    print("-" * 40)
    
    try:
        factory = ObservationFactory(fallback_symbol=None)
        gc_patch_model().decode(factory.observation_sequence("acgnt"))
    except SequenceError as e:
        print(f"Sequence rejected: {e}")
    except DecodingError as e:
        print(f"Decoding failed: {e}")
    except ViterbiHMMError as e:
        print(f"Unexpected ViterbiHMM error: {e}")
    
    print("Always handle specific ViterbiHMM exceptions first")
    print()


if __name__ == "__main__":
    print("ViterbiHMM Usage Examples")
    print("=" * 50)
    print()
    
    example_decode_dice()
    example_build_model()
    example_train_gc_patches()
    example_save_and_load()
    example_cli_commands()
    example_custom_configuration()
    example_error_handling()
