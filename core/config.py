# core/config.py

"""
Runtime settings for the classroom task client.

Values are read from the environment after loading an optional `.env` file.
"""

from __future__ import annotations

import logging
import math
import os

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_RESYNC_DELAY = 1.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HISTORY_LIMIT = 50


class Settings:

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        resync_delay: float = DEFAULT_RESYNC_DELAY,
        log_level: str = DEFAULT_LOG_LEVEL,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token or None
        self._timeout = Settings.validate_seconds_input(timeout, "timeout")
        self._resync_delay = Settings.validate_seconds_input(
            resync_delay, "resync delay"
        )
        self._log_level = log_level.upper()
        self._history_limit = Settings.validate_history_limit_input(history_limit)

    # === properties ===

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_token(self) -> str | None:
        return self._api_token

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def resync_delay(self) -> float:
        return self._resync_delay

    @property
    def history_limit(self) -> int:
        return self._history_limit

    @property
    def log_level(self) -> str:
        return self._log_level

    # === public classmethods ===

    @classmethod
    def from_env(cls, dotenv: bool = True, dotenv_path: str | None = None) -> Settings:
        """
        Reads settings from CLASSROOM_* environment variables.

        Args:
            dotenv (bool): Load a `.env` file first. Variables already set in the
                environment are not overridden by it.
            dotenv_path (str | None): Explicit `.env` location; searched for when omitted.

        Raises:
            ValueError: If a timeout or delay is not a non-negative number, or the
                history limit is not a positive whole number.
        """
        if dotenv:
            load_dotenv(dotenv_path)

        return cls(
            base_url=os.getenv("CLASSROOM_API_BASE_URL", DEFAULT_BASE_URL),
            api_token=os.getenv("CLASSROOM_API_TOKEN"),
            timeout=os.getenv("CLASSROOM_API_TIMEOUT", DEFAULT_TIMEOUT),
            resync_delay=os.getenv("CLASSROOM_RESYNC_DELAY", DEFAULT_RESYNC_DELAY),
            log_level=os.getenv("CLASSROOM_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            history_limit=os.getenv("CLASSROOM_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        token = "set" if self._api_token else "unset"
        return f"Settings({self._base_url}, token={token}, {self._timeout}, {self._resync_delay}, {self._log_level}, {self._history_limit})"

    # === data validators ===

    @staticmethod
    def validate_seconds_input(value, label: str) -> float:
        try:
            seconds = float(value)

        except (TypeError, ValueError):
            raise ValueError(f"Invalid {label}. Expected a number of seconds.") from None

        if not math.isfinite(seconds) or seconds < 0:
            raise ValueError(
                f"Invalid {label}. Must be a finite, non-negative number of seconds."
            )

        return seconds

    @staticmethod
    def validate_history_limit_input(value) -> int:
        try:
            limit = int(value)

        except (TypeError, ValueError):
            raise ValueError("Invalid history limit. Expected a whole number.") from None

        if limit < 1:
            raise ValueError("Invalid history limit. Must keep at least one snapshot.")

        return limit


def configure_logging(level: str | int = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
