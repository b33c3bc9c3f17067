"""
Main CLI application for ViterbiHMM system.

Provides command-line interface for decoding observation sequences and
running Viterbi training against preset or saved models.
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_config, load_config_file
from ..hmm.model import ViterbiHMM
from ..io.sequence import ObservationFactory
from ..logger import enable_file_logging, set_log_level
from ..presets import PRESETS, get_preset
from ..train.persistence import ModelPersistence, load_model_file
from ..train.trainer import ViterbiTrainer
from .errors import EXIT_CODES, InputError, handle_cli_error, validate_file_exists

console = Console()

app = typer.Typer(
    name="viterbi-hmm",
    help="Viterbi decoding and Viterbi training for discrete Hidden Markov Models",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)


def _is_debug(ctx: typer.Context) -> bool:
    return bool(ctx.meta.get("debug", False)) if ctx else False


def load_model(preset: Optional[str], model_file: Optional[Path]) -> ViterbiHMM:
    """Build the model selected on the command line."""
    if model_file is not None:
        validate_file_exists(model_file, "model file")
        return load_model_file(model_file)
    
    name = preset or 'gc_patch'
    if name not in PRESETS:
        raise InputError(
            f"Unknown preset: {name}",
            suggestions=[f"Available presets: {', '.join(sorted(PRESETS))}"]
        )
    return get_preset(name)


def factory_for(model: ViterbiHMM) -> ObservationFactory:
    """
    Observation factory whose alphabet is the model's single-character symbols.
    
    The configured fallback symbol is used only when it belongs to that alphabet.
    """
    symbols = [str(observation.payload).lower() for observation in model.observations]
    if not symbols:
        return ObservationFactory()
    if any(len(symbol) != 1 for symbol in symbols):
        raise InputError(
            "Model alphabet has multi-character symbols and cannot be read from text"
        )
    
    alphabet = ''.join(symbols)
    fallback = get_config('sequence', 'fallback_symbol')
    if fallback is not None and fallback.lower() not in alphabet:
        fallback = None
    return ObservationFactory(alphabet=alphabet, fallback_symbol=fallback)


def read_sequence(model: ViterbiHMM, sequence: str, from_file: bool):
    """Convert the SEQUENCE argument (or the file it names) into observations."""
    if from_file:
        path = validate_file_exists(Path(sequence), "sequence file")
        text = path.read_text(encoding='utf-8')
    else:
        text = sequence
    return factory_for(model).observation_sequence(text)


def print_path(path, state: Optional[str], verbose_path: bool, width: Optional[int]) -> None:
    shown = path.filter(state) if state else path
    if verbose_path:
        console.print(shown.to_verbose_string(width), highlight=False, markup=False, soft_wrap=True)
    else:
        console.print(str(shown), highlight=False, markup=False, soft_wrap=True)


@app.command("decode")
def decode(
    ctx: typer.Context,
    sequence: str = typer.Argument(
        ...,
        help="Observation symbols, or a path to a sequence file with --file"
    ),
    from_file: bool = typer.Option(
        False,
        "--file",
        "-f",
        help="Treat SEQUENCE as a path to a (FASTA) sequence file"
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        "-p",
        help="Preset model to use (dice or gc_patch)"
    ),
    model_file: Optional[Path] = typer.Option(
        None,
        "--model-file",
        "-m",
        help="JSON model definition to use instead of a preset"
    ),
    state: Optional[str] = typer.Option(
        None,
        "--state",
        "-s",
        help="Only show segments of this state"
    ),
    verbose_path: bool = typer.Option(
        False,
        "--show-symbols",
        help="Print each observation above its decoded state"
    ),
    width: Optional[int] = typer.Option(
        None,
        "--width",
        "-w",
        help="Line width for --show-symbols output"
    )
):
    """
    Decode the most likely state path of an observation sequence.
    
    Examples:
    ```
    viterbi-hmm decode 316664 --preset dice
    viterbi-hmm decode genome.fna --file --state GCPatch
    ```
    """
    try:
        model = load_model(preset, model_file)
        observations = read_sequence(model, sequence, from_file)
        path = model.decode(observations)
        print_path(path, state, verbose_path, width)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "decode", _is_debug(ctx))


@app.command("train")
def train(
    ctx: typer.Context,
    sequence: str = typer.Argument(
        ...,
        help="Observation symbols, or a path to a sequence file with --file"
    ),
    from_file: bool = typer.Option(
        False,
        "--file",
        "-f",
        help="Treat SEQUENCE as a path to a (FASTA) sequence file"
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        "-p",
        help="Preset model to start from (dice or gc_patch)"
    ),
    model_file: Optional[Path] = typer.Option(
        None,
        "--model-file",
        "-m",
        help="JSON model definition to start from"
    ),
    iterations: Optional[int] = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Number of decode/train iterations"
    ),
    tolerance: Optional[float] = typer.Option(
        None,
        "--tolerance",
        "-t",
        help="Stop once the log-likelihood changes by less than this"
    ),
    state: Optional[str] = typer.Option(
        None,
        "--state",
        "-s",
        help="Only show segments of this state"
    ),
    show_model: bool = typer.Option(
        False,
        "--show-model",
        help="Print the model before every iteration"
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to save the trained model to"
    ),
    name: str = typer.Option(
        "model",
        "--name",
        "-n",
        help="Name of the saved model"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing saved model"
    )
):
    """
    Run Viterbi training and report the decoded path of every iteration.
    
    Examples:
    ```
    viterbi-hmm train genome.fna --file --iterations 10 --state GCPatch
    viterbi-hmm train 316664 --preset dice -o models/ -n dice
    ```
    """
    try:
        model = load_model(preset, model_file)
        observations = read_sequence(model, sequence, from_file)
        
        def report(iteration, current_model, path):
            console.print(f"[bold]Iteration {iteration}[/bold]")
            if show_model:
                console.print("Model:", highlight=False)
                console.print(current_model.describe(), highlight=False, markup=False, soft_wrap=True)
            console.print("Path:", highlight=False)
            print_path(path, state, False, None)
            console.print()
        
        trainer = ViterbiTrainer(
            max_iterations=iterations,
            convergence_tolerance=tolerance,
            on_iteration=report
        )
        stats = trainer.fit(model, observations)
        
        table = Table(title="Training Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Iterations", str(stats['iterations']))
        table.add_row("Converged", "Yes" if stats['converged'] else "No")
        table.add_row("Final Log Likelihood", f"{stats['final_log_likelihood']:.6f}")
        table.add_row("Unvisited States", ", ".join(stats['unvisited_states']) or "-")
        console.print(table)
        
        if output_dir is not None:
            persistence = ModelPersistence(str(output_dir))
            model_path, _ = persistence.save_model(name, model, stats, overwrite=force)
            console.print(f"[green]Saved model to {model_path}[/green]")
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "train", _is_debug(ctx))


@app.command("show")
def show(
    ctx: typer.Context,
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        "-p",
        help="Preset model to show (dice or gc_patch)"
    ),
    model_file: Optional[Path] = typer.Option(
        None,
        "--model-file",
        "-m",
        help="JSON model definition to show"
    )
):
    """Print a model's states with their transition and emission tables."""
    try:
        model = load_model(preset, model_file)
        console.print(model.describe(), highlight=False, markup=False, soft_wrap=True)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "show", _is_debug(ctx))


@app.command("version")
def show_version():
    """Show ViterbiHMM version information."""
    from .. import __version__
    
    console.print(Panel.fit(
        f"[bold]ViterbiHMM Version {__version__}[/bold]\n"
        f"Viterbi decoding and training for discrete HMMs\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress log output except errors"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode with detailed error traces"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to JSON configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write log messages to this file"
    )
):
    """
    ViterbiHMM: Viterbi decoding and training for discrete HMMs
    
    \b
    Quick Start:
    1. Inspect a model:   viterbi-hmm show --preset dice
    2. Decode a sequence: viterbi-hmm decode 316664 --preset dice
    3. Train a model:     viterbi-hmm train <file> --file --iterations 10
    """
    ctx.meta["verbose"] = verbose
    ctx.meta["quiet"] = quiet
    ctx.meta["debug"] = debug
    
    if config_file:
        try:
            load_config_file(str(config_file))
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(EXIT_CODES["config_error"])
    
    if quiet:
        set_log_level('ERROR')
    elif verbose or debug:
        set_log_level('DEBUG')
    else:
        set_log_level(get_config('logging', 'level') or 'INFO')
    
    if log_file:
        enable_file_logging(str(log_file))


if __name__ == "__main__":
    app()
