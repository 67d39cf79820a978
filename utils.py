# utils.py
"""
Shared helpers: logging setup, config loading and color parsing.

Nothing here knows about particles or the field; these are the pieces
that main.py, the simulation and the renderer all lean on.
"""
import logging
import logging.handlers
import json
import os
import re
from typing import Dict, Any, List, Tuple

from constants import DEFAULT_COLOR

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs: the full config; only its "logging" section is read
#     (level, format, log_file, max_bytes, backup_count).
#   - Side Effects: replaces every handler on the root logger with one
#     console handler and one rotating file handler, creating the log
#     directory first.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises: FileNotFoundError, json.JSONDecodeError (logged first).
#
# parse_color_palette(text: str) -> List[str]:
#   - Inputs: comma-separated hex tokens, e.g. "#EE3124, #7851A9".
#   - Outputs: the tokens matching #RRGGBB, in order. Never empty.

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'logs/flow_field.log'


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Routes the root logger to the console and to a size-rotated log file.
    """
    section = config.get('logging', {})
    level = section.get('level', 'INFO').upper()
    log_file = section.get('log_file', DEFAULT_LOG_FILE)
    max_bytes = section.get('max_bytes', 1024 * 1024)
    backup_count = section.get('backup_count', 5)

    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    formatter = logging.Formatter(section.get('format', DEFAULT_LOG_FORMAT))
    handlers = [
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count),
    ]

    root = logging.getLogger()
    root.setLevel(level)
    # Re-running setup must not stack duplicate handlers
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.info(f"Logging to console and {log_file} at {level}.")


def load_config(path: str) -> Dict[str, Any]:
    """Reads the JSON config file at `path`."""
    logging.info(f"Reading config file {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"No config file at {path}.")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Config file {path} is not valid JSON: {e}")
        raise
    logging.info(f"Config sections: {', '.join(config) or 'none'}")
    return config


def parse_color_palette(text: str) -> List[str]:
    """
    Parses a comma-separated list of hex colors, discarding malformed tokens.

    Falls back to a single white entry when nothing valid remains.
    """
    tokens = [token.strip() for token in text.split(',')]
    palette = [token for token in tokens if HEX_COLOR_PATTERN.match(token)]
    rejected = len([t for t in tokens if t]) - len(palette)
    if rejected:
        logging.warning(f"Discarded {rejected} malformed color token(s) from palette.")
    if not palette:
        palette = [DEFAULT_COLOR]
    logging.info(f"Color palette loaded: {palette}")
    return palette


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """Converts '#rrggbb' to an (r, g, b) tuple. Malformed input maps to white."""
    if not HEX_COLOR_PATTERN.match(color):
        logging.warning(f"Invalid color '{color}', using {DEFAULT_COLOR}.")
        color = DEFAULT_COLOR
    return int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16)
