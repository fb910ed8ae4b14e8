import os
import logging

from dotenv import find_dotenv, load_dotenv


logger = logging.getLogger(__name__)

# Locate .env file (search upward from current working directory)
dotenv_path = find_dotenv(usecwd=True)

if dotenv_path:
    # Load .env and override environment variables
    load_dotenv(dotenv_path=dotenv_path, override=True)
    logger.info(f"Configuration loaded from {dotenv_path}")
else:
    logger.debug("No .env file found, using environment variables")


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}; using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    logger.warning(f"Invalid value for {name}: {raw!r}; using default {default}")
    return default


class Config:
    """Configuration for the viewmodel motion core.

    Values are read from the environment when the instance is created, so
    tests can build a fresh ``Config()`` after patching the environment.
    """

    def __init__(self) -> None:
        """Read every setting from the current environment."""
        self.DEFAULT_ITEM = os.getenv("VIEWMODEL_DEFAULT_ITEM", "default").strip() or "default"

        self.FRAME_RATE_HZ = _env_float("VIEWMODEL_FRAME_RATE_HZ", 60.0)
        if self.FRAME_RATE_HZ <= 0:
            logger.warning(f"VIEWMODEL_FRAME_RATE_HZ must be positive, got {self.FRAME_RATE_HZ}; using 60")
            self.FRAME_RATE_HZ = 60.0

        self.REFERENCE_RATE = _env_float("VIEWMODEL_REFERENCE_RATE", 60.0)
        if self.REFERENCE_RATE <= 0:
            logger.warning(f"VIEWMODEL_REFERENCE_RATE must be positive, got {self.REFERENCE_RATE}; using 60")
            self.REFERENCE_RATE = 60.0

        self.MAX_SWAY = abs(_env_float("VIEWMODEL_MAX_SWAY", 0.2))
        self.LATERAL_BOB_RATIO = max(0.0, _env_float("VIEWMODEL_LATERAL_BOB_RATIO", 0.0))
        self.BOB_SPEED_SCALING = _env_bool("VIEWMODEL_BOB_SPEED_SCALING", False)
        self.REFERENCE_SPEED = _env_float("VIEWMODEL_REFERENCE_SPEED", 16.0)

        logger.debug(f"Default item: {self.DEFAULT_ITEM}")
        logger.debug(
            f"Frame rate: {self.FRAME_RATE_HZ}Hz, reference rate: {self.REFERENCE_RATE}Hz, max sway: {self.MAX_SWAY}"
        )


config = Config()
