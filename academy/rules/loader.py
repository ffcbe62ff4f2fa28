import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from academy.rules.models import Rules

logger = logging.getLogger(__name__)


def _describe(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  {where}: {item['msg']}")
    return "\n".join(lines)


def load_rules(path: str | Path) -> Rules:
    """
    Parse ``academy_rules.yaml`` into a validated Rules tree.

    A missing file raises FileNotFoundError; bad YAML, a non-mapping document
    or a schema mismatch raise ValueError naming the offending keys.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"{path.name}: invalid YAML ({e})") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a mapping of rule sections, got {type(data).__name__}")

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"{path.name}: rules validation failed\n{_describe(e)}") from e

    logger.debug("Loaded rules %s from %s", rules.project.rules_version, path)
    return rules
