from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

ENV_PREFIX = "XMLSTREAMER_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class StreamerSettings:
    encoding: Optional[str] = None
    huge_tree: bool = False
    resolve_entities: bool = False
    no_network: bool = True
    log_level: str = "WARNING"

    def cursor_options(self) -> Dict[str, bool]:
        return {
            "huge_tree": self.huge_tree,
            "resolve_entities": self.resolve_entities,
            "no_network": self.no_network,
        }


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def load_settings(env_file: Optional[Union[str, Path]] = None) -> StreamerSettings:
    """
    Read settings from the environment, after loading a .env file.
    Variables already set in the environment win over the .env file.
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    encoding = os.getenv(ENV_PREFIX + "ENCODING", "").strip() or None

    log_level = os.getenv(ENV_PREFIX + "LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"Unknown log level: {log_level!r}")

    return StreamerSettings(
        encoding=encoding,
        huge_tree=_env_bool("HUGE_TREE", False),
        resolve_entities=_env_bool("RESOLVE_ENTITIES", False),
        no_network=_env_bool("NO_NETWORK", True),
        log_level=log_level,
    )
