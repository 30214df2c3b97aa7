"""Configuration management"""
import logging
import os

from dotenv import load_dotenv

from eduplay.exceptions import ConfigurationError

load_dotenv()


def _get_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# Subscription lifecycle
TRIAL_DAYS: int = int(os.getenv("EDUPLAY_TRIAL_DAYS", "3"))
DEFAULT_GRACE_PERIOD_DAYS: int = int(os.getenv("EDUPLAY_GRACE_PERIOD_DAYS", "3"))
RENEWAL_REMINDER_DAYS: int = int(os.getenv("EDUPLAY_RENEWAL_REMINDER_DAYS", "3"))
DEFAULT_CURRENCY: str = os.getenv("EDUPLAY_DEFAULT_CURRENCY", "USD")

# Free tier (applies once the trial or premium access has lapsed)
FREE_DAILY_ACTIVITY_LIMIT: int = int(os.getenv("EDUPLAY_FREE_DAILY_ACTIVITY_LIMIT", "10"))

# Invalid transitions (e.g. renew while not active):
# - false (default): leave the record untouched, log a warning, return False
# - true: raise InvalidTransitionError
STRICT_TRANSITIONS: bool = _get_bool("EDUPLAY_STRICT_TRANSITIONS")

# Achievements
HIDDEN_ACHIEVEMENT_REVEAL_PERCENT: int = int(os.getenv("EDUPLAY_HIDDEN_REVEAL_PERCENT", "80"))
ACHIEVEMENT_EXPIRY_WARNING_DAYS: int = int(os.getenv("EDUPLAY_EXPIRY_WARNING_DAYS", "3"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if TRIAL_DAYS < 0:
        raise ConfigurationError("EDUPLAY_TRIAL_DAYS must not be negative", config_key="EDUPLAY_TRIAL_DAYS")
    if DEFAULT_GRACE_PERIOD_DAYS < 0:
        raise ConfigurationError(
            "EDUPLAY_GRACE_PERIOD_DAYS must not be negative", config_key="EDUPLAY_GRACE_PERIOD_DAYS"
        )
    if FREE_DAILY_ACTIVITY_LIMIT < 0:
        raise ConfigurationError(
            "EDUPLAY_FREE_DAILY_ACTIVITY_LIMIT must not be negative",
            config_key="EDUPLAY_FREE_DAILY_ACTIVITY_LIMIT"
        )
    if not 0 <= HIDDEN_ACHIEVEMENT_REVEAL_PERCENT <= 100:
        raise ConfigurationError(
            "EDUPLAY_HIDDEN_REVEAL_PERCENT must be between 0 and 100",
            config_key="EDUPLAY_HIDDEN_REVEAL_PERCENT"
        )
    if len(DEFAULT_CURRENCY) != 3:
        raise ConfigurationError(
            "EDUPLAY_DEFAULT_CURRENCY must be an ISO 4217 code", config_key="EDUPLAY_DEFAULT_CURRENCY"
        )
    if not hasattr(logging, LOG_LEVEL.upper()):
        raise ConfigurationError(f"Unknown LOG_LEVEL: {LOG_LEVEL}", config_key="LOG_LEVEL")


def configure_logging() -> None:
    """Apply the default log format and level"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )
