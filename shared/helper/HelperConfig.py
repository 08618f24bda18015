"""Central configuration helper for the e-invoice upload bridge."""

import logging
import os

from dotenv import load_dotenv


def load_env_file(env_file: str | None) -> bool:
    """Load an optional .env file. Variables already set in the process environment win.

    Returns:
        bool: True if at least one variable was read from the file.
    """
    if not env_file:
        return False
    return load_dotenv(env_file, override=False)


class HelperConfig:
    """Central configuration helper. Reads all settings from environment variables.

    Values from an optional .env file are loaded once at construction; variables already
    set in the process environment take precedence.
    """

    def __init__(self, logger: logging.Logger, env_file: str | None = None) -> None:
        self._logger = logger
        env_file = env_file or os.getenv("ENV_FILE")
        if env_file:
            if load_env_file(env_file):
                logger.debug("Loaded configuration from %s", env_file)
            else:
                logger.warning("Configuration file %s not found or empty.", env_file)

    def _read(self, key: str) -> str | None:
        # empty and whitespace-only values count as unset
        raw = os.getenv(key.upper())
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (str | None): Fallback value if the variable is not set.

        Returns:
            str: The resolved value.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        val = self._read(key)
        if val is None and default is None:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return val if val is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable.

        Raises:
            ValueError: If the variable is not set and no default is provided, or is not a number.
        """
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        try:
            return int(raw) if "." not in raw else float(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable ("true", "1", "yes" count as True).

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_logger(self) -> logging.Logger:
        """Return the application logger (a ColorLogger when created by setup_logging())."""
        return self._logger
