"""
Termalink Configuration

Settings are read from TERMALINK_* environment
variables, optionally seeded from a termalink.env
file in the working directory.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional
import os
import site
import sys

from dotenv import dotenv_values

SERVER_FOLDER = Path(__file__).parent.absolute()
ENV_FILE = "termalink.env"
DICTIONARY_NAME = "words.txt"


def find_dictionary(folders: Optional[Iterable[Path]] = None) -> str:
    """
    Locate the bundled word list. It sits beside the
    modules in a checkout, and under share/termalink
    once installed.
    """
    if folders is None:
        folders = [SERVER_FOLDER, Path(sys.prefix) / "share" / "termalink"]
        if site.USER_BASE:
            folders.append(Path(site.USER_BASE) / "share" / "termalink")
    folders = list(folders)
    for folder in folders:
        path = Path(folder) / DICTIONARY_NAME
        if path.is_file():
            return str(path)
    # Let the loader report the first place we looked
    return str(Path(folders[0]) / DICTIONARY_NAME)


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 2160
DEFAULT_DICTIONARY = find_dictionary()
ATTEMPTS_PER_ROUND = 4
PASSWORD_LENGTH = 7
NUMBER_OF_PASSWORDS = 10
TIMEOUT = 5 * 60 # 5 minutes

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    dictionary: str = DEFAULT_DICTIONARY
    attempts_per_round: int = ATTEMPTS_PER_ROUND
    password_length: int = PASSWORD_LENGTH
    number_of_passwords: int = NUMBER_OF_PASSWORDS
    timeout: float = TIMEOUT
    # NOTE: Leave unset in production, a known
    # seed lets players predict the passwords.
    seed: Optional[int] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port {self.port} is out of range")
        if self.attempts_per_round < 1:
            raise ValueError("Need at least one attempt per round")
        if self.password_length < 1:
            raise ValueError("Password length must be positive")
        if self.number_of_passwords < 1:
            raise ValueError("Need at least one password per round")
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {self.log_level}")

    @property
    def address(self):
        return (self.host, self.port)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 env_file: Optional[str] = ENV_FILE) -> "Config":
        """
        Build a Config from TERMALINK_* variables, falling back to defaults.
        With no environ given, the process environment is layered over
        env_file. os.environ itself is never modified.
        """
        if environ is None:
            env = {}
            if env_file is not None:
                env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
            env.update(os.environ)
        else:
            env = environ

        seed = env.get('TERMALINK_SEED')
        try:
            return cls(
                host=env.get('TERMALINK_HOST', DEFAULT_HOST),
                port=int(env.get('TERMALINK_PORT', DEFAULT_PORT)),
                dictionary=env.get('TERMALINK_DICTIONARY', DEFAULT_DICTIONARY),
                attempts_per_round=int(env.get('TERMALINK_ATTEMPTS', ATTEMPTS_PER_ROUND)),
                password_length=int(env.get('TERMALINK_PASSWORD_LENGTH', PASSWORD_LENGTH)),
                number_of_passwords=int(env.get('TERMALINK_PASSWORDS', NUMBER_OF_PASSWORDS)),
                timeout=float(env.get('TERMALINK_TIMEOUT', TIMEOUT)),
                seed=int(seed) if seed else None,
                log_level=env.get('TERMALINK_LOG_LEVEL', 'INFO'),
                log_dir=env.get('TERMALINK_LOG_DIR') or None,
            )
        except ValueError as e:
            raise ValueError(f"Invalid Termalink configuration: {e}") from e
