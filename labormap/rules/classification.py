"""Keyword classification of free-text descriptions.

Rules are evaluated in list order and the first keyword found in the
description wins, regardless of how specific a later keyword would be.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

import yaml
from pydantic import BaseModel, Field, ValidationError

from labormap.canonical.normalize import normalize_text
from labormap.config import get_config
from labormap.exceptions import ConfigurationError
from labormap.models import Priority


class ClassificationRule(BaseModel):
    """Keyword -> category rule with display hints."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    keyword: str
    category: str
    icon: str = "fa-tag"
    priority: Priority = Priority.NORMAL
    color: str = "gray"


@dataclass(frozen=True)
class Classification:
    """Result of classifying a description."""

    rule_id: str
    keyword: str
    category: str
    icon: str
    priority: Priority
    color: str


def classify(description: str | None, rules: list[ClassificationRule]) -> Optional[Classification]:
    """Return the first rule whose keyword occurs in the description.

    Args:
        description: Free-text line item or catalog description
        rules: Ordered classification rules

    Returns:
        Classification of the first matching rule, or None
    """
    text = normalize_text(description)
    if not text:
        return None

    for rule in rules:
        keyword = normalize_text(rule.keyword)
        if keyword and keyword in text:
            return Classification(
                rule_id=rule.id,
                keyword=keyword,
                category=rule.category,
                icon=rule.icon,
                priority=rule.priority,
                color=rule.color,
            )
    return None


def load_classification_rules(config_path: Path | None = None) -> list[ClassificationRule]:
    """Load ordered classification rules from YAML.

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if config_path is None:
        config_path = get_config().classification_rules_path

    if not config_path.exists():
        raise ConfigurationError(f"Classification rules config not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    try:
        return [
            ClassificationRule.model_validate(raw)
            for raw in data.get("classification_rules", [])
        ]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid classification rule in {config_path}: {e}")
