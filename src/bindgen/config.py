"""Generator configuration and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from src.bindgen.plan import DispatchStrategy

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class GeneratorSettings:
    """Settings fixed for one compilation target.

    Attributes:
        dispatch_strategy: How entry points recognize their call site. Use
            ``exact_text`` when callers can capture argument expressions,
            ``positional`` otherwise.
        log_level: Level passed to ``configure_logging``
    """

    dispatch_strategy: DispatchStrategy = DispatchStrategy.EXACT_TEXT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: str | Path | None = None) -> GeneratorSettings:
        """Build settings from environment variables.

        A ``.env`` file is loaded first if present; variables already set in
        the environment take precedence over it.

        Environment:
            BINDGEN_DISPATCH_STRATEGY: ``exact_text`` or ``positional``
            BINDGEN_SUPPORTS_CALLER_ARG_EXPR: boolean shortcut; true selects
                ``exact_text``, false selects ``positional``. Ignored when
                BINDGEN_DISPATCH_STRATEGY is set.
            BINDGEN_LOG_LEVEL: logging level name

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env_path = Path(env_path) if env_path is not None else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        strategy = DispatchStrategy.EXACT_TEXT
        raw_strategy = os.getenv("BINDGEN_DISPATCH_STRATEGY")
        raw_caller_expr = os.getenv("BINDGEN_SUPPORTS_CALLER_ARG_EXPR")
        if raw_strategy:
            try:
                strategy = DispatchStrategy(raw_strategy.strip().lower())
            except ValueError:
                valid = ", ".join(s.value for s in DispatchStrategy)
                raise ValueError(
                    f"BINDGEN_DISPATCH_STRATEGY must be one of {valid}, got {raw_strategy!r}"
                ) from None
        elif raw_caller_expr:
            if not _parse_bool("BINDGEN_SUPPORTS_CALLER_ARG_EXPR", raw_caller_expr):
                strategy = DispatchStrategy.POSITIONAL

        log_level = os.getenv("BINDGEN_LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"BINDGEN_LOG_LEVEL is not a logging level: {log_level!r}")

        return cls(dispatch_strategy=strategy, log_level=log_level)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging with the project's format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
