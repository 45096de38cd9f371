"""
Logging setup shared by the API server and the CLI.

Console output goes through Rich; an optional plain-text file receives the
same records with timestamps and logger names.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional, Union
from rich.console import Console
from rich.logging import RichHandler

console = Console()

# Chatty dependencies of the diagram renderer, spaCy and the Gemini client
QUIET_LOGGERS = ("matplotlib", "PIL", "httpx", "httpcore", "urllib3", "langchain_google_genai")

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(log_level: Union[str, int]) -> int:
    """Accept "debug", "INFO", logging.WARNING, ... and return the numeric level."""
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{log_level}'")
    return level


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Route the root logger to the Rich console and, optionally, a file."""
    level = resolve_level(log_level)

    handlers = [RichHandler(console=console, show_path=False, markup=False)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    # force=True replaces handlers left over from an earlier setup
    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
