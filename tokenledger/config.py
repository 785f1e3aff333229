from __future__ import annotations
"""
tokenledger.config: configuration for the token ledger

Covers:
- Metadata limits (decimals range, default decimals; name/symbol length and
  printable-ASCII rules when strict_metadata is on)
- Account identifier width
- CLI defaults (database path, log level)

Environment overrides (all optional; sensible defaults provided):

  TOKENLEDGER_DEFAULT_DECIMALS=18
  TOKENLEDGER_MAX_DECIMALS=36
  TOKENLEDGER_MAX_NAME_LEN=64
  TOKENLEDGER_MAX_SYMBOL_LEN=11
  TOKENLEDGER_STRICT_METADATA=false
  TOKENLEDGER_MAX_ACCOUNT_BYTES=64
  TOKENLEDGER_DB_PATH=tokenledger.db
  TOKENLEDGER_LOG_LEVEL=INFO

You can also load from a JSON or YAML file via
`TOKENLEDGER_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


import json
import logging
import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class LedgerConfig:
    """Top-level configuration container."""
    default_decimals: int = 18
    max_decimals: int = 36
    # max_name_len, max_symbol_len and the printable-ASCII rule apply only when strict_metadata is set.
    max_name_len: int = 64
    max_symbol_len: int = 11
    strict_metadata: bool = False
    max_account_bytes: int = 64
    db_path: str = "tokenledger.db"
    log_level: str = "INFO"

    def validate(self) -> None:
        if self.max_decimals < 0:
            raise ValueError("max_decimals must be non-negative.")
        if not (0 <= self.default_decimals <= self.max_decimals):
            raise ValueError(
                f"default_decimals must be in [0, {self.max_decimals}] (got {self.default_decimals})."
            )
        if self.max_name_len <= 0 or self.max_symbol_len <= 0:
            raise ValueError("Name/symbol length limits must be positive.")
        # Allowance keys carry the owner width in a single byte.
        if not (1 <= self.max_account_bytes <= 255):
            raise ValueError(f"max_account_bytes must be in [1, 255] (got {self.max_account_bytes}).")
        if not self.db_path:
            raise ValueError("db_path must be non-empty.")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS} (got {self.log_level!r}).")

    def log_level_no(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v == "" else v


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def from_env(base: Optional[LedgerConfig] = None, prefix: str = "TOKENLEDGER_") -> LedgerConfig:
    """
    Build a LedgerConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or LedgerConfig()
    new_cfg = LedgerConfig(
        default_decimals=_getenv_int(f"{prefix}DEFAULT_DECIMALS", cfg.default_decimals),
        max_decimals=_getenv_int(f"{prefix}MAX_DECIMALS", cfg.max_decimals),
        max_name_len=_getenv_int(f"{prefix}MAX_NAME_LEN", cfg.max_name_len),
        max_symbol_len=_getenv_int(f"{prefix}MAX_SYMBOL_LEN", cfg.max_symbol_len),
        strict_metadata=_getenv_bool(f"{prefix}STRICT_METADATA", cfg.strict_metadata),
        max_account_bytes=_getenv_int(f"{prefix}MAX_ACCOUNT_BYTES", cfg.max_account_bytes),
        db_path=_getenv_str(f"{prefix}DB_PATH", cfg.db_path),
        log_level=_getenv_str(f"{prefix}LOG_LEVEL", cfg.log_level),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> LedgerConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"Config file {p} must contain a mapping.")

    defaults = LedgerConfig()
    cfg = LedgerConfig(
        default_decimals=int(data.get("default_decimals", defaults.default_decimals)),
        max_decimals=int(data.get("max_decimals", defaults.max_decimals)),
        max_name_len=int(data.get("max_name_len", defaults.max_name_len)),
        max_symbol_len=int(data.get("max_symbol_len", defaults.max_symbol_len)),
        strict_metadata=bool(data.get("strict_metadata", defaults.strict_metadata)),
        max_account_bytes=int(data.get("max_account_bytes", defaults.max_account_bytes)),
        db_path=str(data.get("db_path", defaults.db_path)),
        log_level=str(data.get("log_level", defaults.log_level)),
    )
    cfg.validate()
    return cfg


def load() -> LedgerConfig:
    """
    Load configuration using the following precedence:
      1) File at $TOKENLEDGER_CONFIG_FILE (JSON/YAML)
      2) Environment variables (TOKENLEDGER_*), applied on top of defaults or file values
    """
    file_path = os.getenv("TOKENLEDGER_CONFIG_FILE")
    base = from_file(file_path) if file_path else LedgerConfig()
    return from_env(base=base)


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """Cached `load()`; call `load_config.cache_clear()` after changing the environment."""
    return load()


def pretty(cfg: Optional[LedgerConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "LedgerConfig",
    "from_env",
    "from_file",
    "load",
    "load_config",
    "pretty",
]
