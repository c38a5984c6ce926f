"""
Game Logger for the Termalink Server

Console logging for the server plus an optional
dated log file. Game events are written as one
JSON object per line so they can be grepped or parsed.
"""
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging

LOGGER_NAME = "termalink"

logger = logging.getLogger(LOGGER_NAME)


def setup_logger(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the termalink logger."""
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"termalink_{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def create_log_entry(event: str, peer: str, details: Dict[str, Any]) -> str:
    log_entry = {
        'timestamp': datetime.now().isoformat(),
        'event_type': 'GAME_EVENT',
        'event': event,
        'peer': peer,
        'details': details
    }
    return json.dumps(log_entry, ensure_ascii=False)


def log_game_event(peer: str, event: str, **details):
    """
    Log game-specific events (round won, round lost, ...).
    Never pass passwords in here.
    """
    logger.info(create_log_entry(event, peer, details))
