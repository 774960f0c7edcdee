"""Shared settings, console and logging setup."""

import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.logging import RichHandler

console = Console()


@dataclass(frozen=True)
class Settings:
    data_dir: str = "data"
    log_level: str = "INFO"
    ident: str = "PWAD"
    map_name: str = "MAP01"


def get_settings() -> Settings:
    """Read settings from the environment, after loading a .env file if present.

    WADTOOL_DATA_DIR   default output directory for WADs, JSON and previews
    WADTOOL_LOG_LEVEL  logging level name
    WADTOOL_IDENT      header tag for written WADs (IWAD/PWAD)
    WADTOOL_MAP_NAME   level marker for written WADs
    """
    load_dotenv(find_dotenv(usecwd=True))
    defaults = Settings()
    return Settings(
        data_dir=os.environ.get("WADTOOL_DATA_DIR", defaults.data_dir),
        log_level=os.environ.get("WADTOOL_LOG_LEVEL", defaults.log_level).upper(),
        ident=os.environ.get("WADTOOL_IDENT", defaults.ident).upper(),
        map_name=os.environ.get("WADTOOL_MAP_NAME", defaults.map_name).upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """Route library logging through rich on the shared console."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def load_prompt(path: str) -> str:
    """Load a level prompt from a text file.

    Returns the stripped prompt text.  Raises FileNotFoundError if the file
    is missing and ValueError if it is empty.
    """
    with open(path) as f:
        text = f.read().strip()
    if not text:
        raise ValueError(f"Prompt file is empty: {path}")
    return text
