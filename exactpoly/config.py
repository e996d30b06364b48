"""
Engine configuration.

Every knob is read from the environment with strict validation: a value that is present but
malformed is a deployment error and raises, it is never replaced by the default.

  EXACTPOLY_MAX_INT          rational-root search bound (default 2**31 - 1)
  EXACTPOLY_CACHE_MAX_SIZE   live cache slots before unused ones are reclaimed
  EXACTPOLY_LOG_LEVEL        DEBUG / INFO / WARNING / ERROR
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

ENV_MAX_INT = "EXACTPOLY_MAX_INT"
ENV_CACHE_MAX_SIZE = "EXACTPOLY_CACHE_MAX_SIZE"
ENV_LOG_LEVEL = "EXACTPOLY_LOG_LEVEL"

# INT_MAX of a 32-bit signed machine integer
DEFAULT_MAX_INT = 2**31 - 1
DEFAULT_CACHE_MAX_SIZE = 1 << 14
LOG_LEVELS: Tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_int(environ: Mapping[str, str], name: str, *, default: int) -> int:
    """Decimal integer knob; unset or blank means ``default``, anything unparsable raises."""
    text = str(environ.get(name) or "").strip()
    if not text:
        return default
    try:
        return int(text, 10)
    except ValueError as e:
        raise ValueError(f"${name}={text!r} is not a decimal integer") from e


def _env_strict_enum(environ: Mapping[str, str], name: str, *, allowed: Tuple[str, ...], default: str) -> str:
    """Case-insensitive choice among ``allowed`` (returned upper-cased); unset or blank means ``default``."""
    text = str(environ.get(name) or "").strip()
    if not text:
        return default
    choice = text.upper()
    if choice not in allowed:
        raise ValueError(f"${name}={text!r} is not one of {', '.join(allowed)}")
    return choice


@dataclass(frozen=True)
class EngineConfig:
    max_int: int = DEFAULT_MAX_INT
    cache_max_size: int = DEFAULT_CACHE_MAX_SIZE
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not isinstance(self.max_int, int) or self.max_int < 1:
            raise ValueError(f"max_int must be int >= 1, got {self.max_int!r}")
        if not isinstance(self.cache_max_size, int) or self.cache_max_size < 1:
            raise ValueError(f"cache_max_size must be int >= 1, got {self.cache_max_size!r}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got {self.log_level!r}")


def load_config(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if environ is None else environ
    return EngineConfig(
        max_int=_env_int(env, ENV_MAX_INT, default=DEFAULT_MAX_INT),
        cache_max_size=_env_int(env, ENV_CACHE_MAX_SIZE, default=DEFAULT_CACHE_MAX_SIZE),
        log_level=_env_strict_enum(env, ENV_LOG_LEVEL, allowed=LOG_LEVELS, default="WARNING"),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Install a default handler only when none is configured, so a host application keeps control."""
    lvl = load_config().log_level if level is None else str(level).upper()
    if lvl not in LOG_LEVELS:
        raise ValueError(f"log level must be one of {list(LOG_LEVELS)}, got {level!r}")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=getattr(logging, lvl),
            format="[%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("exactpoly").setLevel(getattr(logging, lvl))
