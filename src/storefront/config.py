"""Runtime settings for storefront.

Every value can be overridden through an environment variable; stores and
gates also accept explicit arguments so tests never touch the real data dir.
"""

import os
from dataclasses import dataclass
from pathlib import Path

_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("STOREFRONT_DATA_DIR", _default_data_dir))

DEFAULT_MERCHANT_PIN = "1234"
MERCHANT_PIN = os.environ.get("STOREFRONT_MERCHANT_PIN", DEFAULT_MERCHANT_PIN)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        return default


# Simulated backend latency in seconds (0 disables it)
SAVE_LATENCY = _float_env("STOREFRONT_SAVE_LATENCY", 0.0)
LIST_LATENCY = _float_env("STOREFRONT_LIST_LATENCY", 0.0)

# Idle seconds before a shopping session is evicted (0 keeps sessions forever)
SESSION_TTL = _float_env("STOREFRONT_SESSION_TTL", 3600.0)


@dataclass(frozen=True)
class Settings:
    """Snapshot of the environment-driven configuration."""

    data_dir: Path
    merchant_pin: str
    save_latency: float = 0.0
    list_latency: float = 0.0
    session_ttl: float = 3600.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=Path(os.environ.get("STOREFRONT_DATA_DIR", DATA_DIR)),
            merchant_pin=os.environ.get("STOREFRONT_MERCHANT_PIN", MERCHANT_PIN),
            save_latency=_float_env("STOREFRONT_SAVE_LATENCY", SAVE_LATENCY),
            list_latency=_float_env("STOREFRONT_LIST_LATENCY", LIST_LATENCY),
            session_ttl=_float_env("STOREFRONT_SESSION_TTL", SESSION_TTL),
        )
