import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from errors import ConfigError


class LookupStrategy(Enum):
    SCAN = "scan"
    INDEX = "index"


class DisputePolicy(Enum):
    """What to do when a dispute needs more than the available funds."""

    REQUIRE_AVAILABLE = "require_available"
    ALLOW_NEGATIVE = "allow_negative"


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineConfig:
    lookup_strategy: LookupStrategy = LookupStrategy.SCAN
    dispute_policy: DisputePolicy = DisputePolicy.REQUIRE_AVAILABLE
    verify_invariants: bool = True
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build config from PAYMENTS_* environment variables.

        Unset variables keep their defaults. Invalid values raise ConfigError.
        """
        if environ is None:
            environ = os.environ

        defaults = cls()
        return cls(
            lookup_strategy=_parse_enum(
                environ, "PAYMENTS_LOOKUP", LookupStrategy, defaults.lookup_strategy
            ),
            dispute_policy=_parse_enum(
                environ, "PAYMENTS_DISPUTE_POLICY", DisputePolicy, defaults.dispute_policy
            ),
            verify_invariants=_parse_bool(
                environ, "PAYMENTS_VERIFY_INVARIANTS", defaults.verify_invariants
            ),
            log_level=_parse_log_level(environ, "PAYMENTS_LOG_LEVEL", defaults.log_level),
        )


def _parse_enum(environ, name, enum_type, default):
    raw = environ.get(name, "").strip().lower()
    if not raw:
        return default
    try:
        return enum_type(raw)
    except ValueError:
        choices = ", ".join(member.value for member in enum_type)
        raise ConfigError(f"{name}={raw!r} is not one of: {choices}") from None


def _parse_bool(environ, name, default):
    raw = environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name}={raw!r} is not a boolean")


def _parse_log_level(environ, name, default):
    raw = environ.get(name, "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ConfigError(f"{name}={raw!r} is not a logging level")
    return level
