"""Configuration for a pvreset run."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from pvreset.errors import ConfigError

DEFAULT_SELECTOR = "/registry/persistentvolumes/%"
DEFAULT_TABLE = "kine"
DEFAULT_TIMEOUT_S = 5.0

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(name: str) -> bool:
    """Return True if ``name`` can be interpolated into SQL as a table name."""
    return bool(_IDENTIFIER.match(name))


@dataclass
class RepairConfig:
    """Configuration for one repair run."""

    selector: str = DEFAULT_SELECTOR
    table: str = DEFAULT_TABLE
    timeout_s: float = DEFAULT_TIMEOUT_S
    dry_run: bool = False
    verify_round_trip: bool = True

    def validate(self) -> RepairConfig:
        if not self.selector:
            raise ConfigError("selector", "must not be empty")
        if not is_identifier(self.table):
            raise ConfigError("table", f"not a plain SQL identifier: {self.table!r}")
        if self.timeout_s <= 0:
            raise ConfigError("timeout_s", f"must be positive, got {self.timeout_s}")
        return self


def config_from_env() -> RepairConfig:
    """Build a config from PVRESET_* environment variables, falling back to defaults."""
    timeout = os.getenv("PVRESET_TIMEOUT")
    try:
        timeout_s = float(timeout) if timeout else DEFAULT_TIMEOUT_S
    except ValueError:
        raise ConfigError("timeout_s", f"PVRESET_TIMEOUT is not a number: {timeout!r}") from None
    return RepairConfig(
        selector=os.getenv("PVRESET_SELECTOR") or DEFAULT_SELECTOR,
        table=os.getenv("PVRESET_TABLE") or DEFAULT_TABLE,
        timeout_s=timeout_s,
    )
