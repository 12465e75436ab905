"""
Ledger configuration: YAML file plus environment overrides.

Resolution order (later wins):
1. `LedgerConfig` defaults,
2. the YAML mapping at `path` (if given),
3. `INTEREST_LEDGER_*` environment variables.

Invalid values fail closed with `ValueError`; unknown YAML keys are rejected.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.accrual import InterestLedger
from ..core.accrual.engine import Clock
from ..core.accrual.math import DEFAULT_GLOBAL_RATE, MAX_AMOUNT
from .access import AccessControl

ENV_PREFIX = "INTEREST_LEDGER_"


@dataclass(frozen=True)
class LedgerConfig:
    name: str = "Interest Ledger Token"
    symbol: str = "ILT"
    decimals: int = 18
    initial_global_rate: int = DEFAULT_GLOBAL_RATE
    owner: str = "owner"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("name", "symbol", "owner"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v.strip():
                raise ValueError(f"{name} must be a non-empty str")
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool) or not (0 <= self.decimals <= 36):
            raise ValueError(f"decimals must be in [0, 36]: {self.decimals!r}")
        rate = self.initial_global_rate
        if not isinstance(rate, int) or isinstance(rate, bool) or not (0 <= rate <= MAX_AMOUNT):
            raise ValueError(f"initial_global_rate must be an unsigned int: {rate!r}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ValueError(f"unknown log_level: {self.log_level!r}")


_FIELD_NAMES = tuple(f.name for f in fields(LedgerConfig))


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_str(name: str) -> str | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    v = raw.strip()
    return v if v else None


def _load_yaml(path: Path) -> Mapping[str, Any]:
    obj = yaml.safe_load(path.read_text(encoding="utf-8"))
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise ValueError(f"config YAML must be a mapping: {path}")
    unknown = sorted(set(obj) - set(_FIELD_NAMES))
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(map(str, unknown))}")
    return obj


def load_config(path: str | Path | None = None) -> LedgerConfig:
    config = LedgerConfig()
    if path is not None:
        config = replace(config, **dict(_load_yaml(Path(path))))

    overrides: dict[str, Any] = {}
    rate = _env_int(ENV_PREFIX + "INITIAL_RATE")
    if rate is not None:
        overrides["initial_global_rate"] = rate
    owner = _env_str(ENV_PREFIX + "OWNER")
    if owner is not None:
        overrides["owner"] = owner
    level = _env_str(ENV_PREFIX + "LOG_LEVEL")
    if level is not None:
        overrides["log_level"] = level
    return replace(config, **overrides) if overrides else config


def build_ledger(config: LedgerConfig, *, clock: Clock | None = None) -> tuple[InterestLedger, AccessControl]:
    """Wire an `InterestLedger` to a fresh `AccessControl` owned by `config.owner`."""
    access = AccessControl(config.owner)
    ledger = InterestLedger(
        access=access,
        initial_rate=config.initial_global_rate,
        clock=clock,
        name=config.name,
        symbol=config.symbol,
        decimals=config.decimals,
    )
    return ledger, access
