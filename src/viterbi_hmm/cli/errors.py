"""
Error handling for CLI commands.

Maps library errors to exit codes and prints them with rich formatting.
"""

import traceback
from pathlib import Path
from typing import Optional
import logging

import typer
from rich.console import Console

from ..exceptions import (
    DecodingError,
    ModelDefinitionError,
    PersistenceError,
    SequenceError,
    TrainingError
)

console = Console()
logger = logging.getLogger(__name__)


EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_usage": 2,
    "sequence_error": 10,
    "model_error": 11,
    "training_error": 12,
    "config_error": 13
}


class ViterbiHMMCLIError(Exception):
    """Base exception for CLI-specific errors."""
    
    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[list] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


class InputError(ViterbiHMMCLIError):
    """Missing or unusable command-line input."""
    
    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["invalid_usage"], suggestions)


def exit_code_for(error: Exception) -> int:
    """Exit code reported for an error raised by a command."""
    if isinstance(error, ViterbiHMMCLIError):
        return error.exit_code
    if isinstance(error, SequenceError):
        return EXIT_CODES["sequence_error"]
    if isinstance(error, (ModelDefinitionError, PersistenceError, DecodingError)):
        return EXIT_CODES["model_error"]
    if isinstance(error, TrainingError):
        return EXIT_CODES["training_error"]
    return EXIT_CODES["general_error"]


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__
    
    message_parts = [
        f"[red]Error during {operation}:[/red]",
        f"[red]{error_type}: {error}[/red]"
    ]
    
    suggestions = getattr(error, 'suggestions', None)
    if suggestions:
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in suggestions:
            message_parts.append(f"  • {suggestion}")
    
    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{traceback.format_exc()}[/dim]")
    
    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Print an error with rich formatting and exit with its code."""
    exit_code = exit_code_for(error)
    
    console.print(format_error_message(error, operation, debug))
    console.print(f"\n[dim]For more help, run: viterbi-hmm {operation.split()[0]} --help[/dim]")
    
    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)
    
    raise typer.Exit(exit_code)


def validate_file_exists(path: Path, file_type: str = "file") -> Path:
    """Validate that a file exists with helpful error messages."""
    if not path.exists():
        suggestions = []
        
        if not path.parent.exists():
            suggestions.append(f"Check the directory exists: {path.parent}")
        else:
            similar_files = [
                item.name for item in path.parent.iterdir()
                if item.name.lower().startswith(path.stem.lower()[:3])
            ]
            if similar_files:
                suggestions.append(f"Did you mean one of: {', '.join(similar_files[:3])}")
        
        raise InputError(
            f"{file_type.capitalize()} not found: {path}",
            suggestions=suggestions
        )
    
    if not path.is_file():
        raise InputError(f"Path is not a file: {path}")
    
    return path
