"""
Ingestion Configuration

Loads the tunable options of the ingestion core from
``config/sms_ingestion.yaml``, falling back to built-in defaults.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import yaml

from .models import DEFAULT_HIGH_CONFIDENCE_THRESHOLD

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sms_ingestion.yaml"

DEFAULT_TIME_WINDOW_MS = 5 * 60 * 1000
MIN_TIME_WINDOW_MS = 1 * 60 * 1000
MAX_TIME_WINDOW_MS = 30 * 60 * 1000


def clamp_window(window_ms: int) -> int:
    """Clamp a duplicate window to [MIN_TIME_WINDOW_MS, MAX_TIME_WINDOW_MS]."""
    return min(max(int(window_ms), MIN_TIME_WINDOW_MS), MAX_TIME_WINDOW_MS)


@dataclass(frozen=True)
class IngestionConfig:
    """Recognized configuration options."""

    duplicate_window_ms: int = DEFAULT_TIME_WINDOW_MS
    high_confidence_threshold: float = DEFAULT_HIGH_CONFIDENCE_THRESHOLD
    amount_cap: Decimal = Decimal("1000000")
    similarity_threshold: float = 0.80
    amount_tolerance: Decimal = Decimal("0.01")

    @property
    def window_ms(self) -> int:
        """The duplicate window actually used, after clamping."""
        return clamp_window(self.duplicate_window_ms)

    @classmethod
    def from_dict(cls, data: dict) -> "IngestionConfig":
        defaults = cls()
        duplicates = data.get("duplicates", {})
        extraction = data.get("extraction", {})
        validation = data.get("validation", {})

        return cls(
            duplicate_window_ms=int(duplicates.get("window_ms", defaults.duplicate_window_ms)),
            high_confidence_threshold=float(
                extraction.get("high_confidence_threshold", defaults.high_confidence_threshold)
            ),
            amount_cap=Decimal(str(validation.get("amount_cap", defaults.amount_cap))),
            similarity_threshold=float(
                duplicates.get("similarity_threshold", defaults.similarity_threshold)
            ),
            amount_tolerance=Decimal(str(duplicates.get("amount_tolerance", defaults.amount_tolerance))),
        )

    def to_dict(self) -> dict:
        return {
            "duplicates": {
                "window_ms": self.duplicate_window_ms,
                "similarity_threshold": self.similarity_threshold,
                "amount_tolerance": float(self.amount_tolerance),
            },
            "extraction": {
                "high_confidence_threshold": self.high_confidence_threshold,
            },
            "validation": {
                "amount_cap": float(self.amount_cap),
            },
        }


def default_config_dir() -> Path:
    return Path(__file__).parent.parent.parent / "config"


def load_config(config_dir: Path | str | None = None) -> IngestionConfig:
    """Load configuration from the config directory.

    Args:
        config_dir: Path to configuration directory

    Returns:
        IngestionConfig, with defaults for anything the file omits
    """
    config_dir = Path(config_dir) if config_dir else default_config_dir()
    config_file = config_dir / CONFIG_FILENAME

    if not config_file.exists():
        logger.debug(f"No {CONFIG_FILENAME} in {config_dir}, using defaults")
        return IngestionConfig()

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    config = IngestionConfig.from_dict(data)
    if config.window_ms != config.duplicate_window_ms:
        logger.warning(
            f"Duplicate window {config.duplicate_window_ms}ms out of range, "
            f"using {config.window_ms}ms"
        )
    return config
