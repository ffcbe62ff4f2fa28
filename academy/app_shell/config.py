import logging
import os
from pathlib import Path

from academy.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Startup requirements not met."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigurationError when a required environment variable is
    missing or the data directory cannot be created.
    """
    missing = [name for name in rules.ops.required_env if not os.environ.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Data directory {data_dir} is not writable: {e}") from e

    logger.info("Configuration validated (rules %s)", rules.project.rules_version)
