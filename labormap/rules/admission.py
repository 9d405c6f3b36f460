"""Admission rules: which internal codes are placeholders that must be linked.

Exactly one admission rule is active at any time. The `RuleSet` value object
owns that invariant; the evaluation functions take the active rule explicitly.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from uuid import uuid4

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from labormap.canonical.normalize import normalize_text
from labormap.config import get_config
from labormap.exceptions import ConfigurationError
from labormap.models import OperationKind

logger = logging.getLogger(__name__)


class CodeStrategy(str, Enum):
    """How an internal code is derived from a factory code on import."""

    MIRROR = "MIRROR"
    FIXED = "FIXED"
    PREFIX = "PREFIX"


class AdmissionRule(BaseModel):
    """Placeholder policy plus import defaults."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: str = ""
    active: bool = False
    placeholder_codes: list[str] = Field(default_factory=list)
    default_category: OperationKind = OperationKind.LABOR
    default_hours: float = 0.0

    strategy: CodeStrategy = CodeStrategy.MIRROR
    fixed_value: str = "MO006"
    prefix_value: str = ""

    @field_validator("placeholder_codes")
    @classmethod
    def normalize_placeholders(cls, v: list[str]) -> list[str]:
        codes = [normalize_text(code) for code in v]
        return [code for code in codes if code]


def is_placeholder(code: str | None, rule: AdmissionRule | None) -> bool:
    """True iff the normalized code is one of the rule's placeholder codes."""
    if rule is None or not rule.placeholder_codes:
        return False
    return normalize_text(code) in rule.placeholder_codes


def is_relevant(code: str | None, rule: AdmissionRule | None) -> bool:
    """Whether a line item with this code needs linking work.

    An empty placeholder list is an open policy: every code is relevant.
    Otherwise the list is a whitelist and only placeholders are relevant,
    which hides parts, fluids and other non-labor lines.
    """
    if rule is None or not rule.placeholder_codes:
        return True
    return is_placeholder(code, rule)


def calculate_internal_code(factory_code: str, rule: AdmissionRule) -> str:
    """Derive the internal code for a factory code under the rule's strategy."""
    if rule.strategy == CodeStrategy.FIXED:
        return rule.fixed_value or "MO006"
    if rule.strategy == CodeStrategy.PREFIX:
        return f"{rule.prefix_value or ''}{factory_code}"
    return factory_code


class RuleSet:
    """Ordered admission rules with exactly one active rule.

    All mutations rebuild the rule list and reassign `active_id` in one step.
    """

    def __init__(self, rules: list[AdmissionRule]):
        if not rules:
            raise ValueError("A rule set needs at least one admission rule")

        active = [rule.id for rule in rules if rule.active]
        if len(active) > 1:
            raise ValueError(f"More than one active admission rule: {active}")

        ids = [rule.id for rule in rules]
        if len(set(ids)) != len(ids):
            raise ValueError("Admission rule ids must be unique")

        self._rules: list[AdmissionRule] = list(rules)
        self._active_id = ""
        self._set_active(active[0] if active else rules[0].id)

    def _set_active(self, rule_id: str) -> None:
        self._rules = [
            rule.model_copy(update={"active": rule.id == rule_id}) for rule in self._rules
        ]
        self._active_id = rule_id

    def _index(self, rule_id: str) -> int:
        for idx, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return idx
        raise ValueError(f"Unknown admission rule: {rule_id}")

    @property
    def rules(self) -> list[AdmissionRule]:
        return list(self._rules)

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> AdmissionRule:
        return self._rules[self._index(self._active_id)]

    def get(self, rule_id: str) -> AdmissionRule:
        return self._rules[self._index(rule_id)]

    def activate(self, rule_id: str) -> AdmissionRule:
        """Make `rule_id` the only active rule."""
        self._index(rule_id)
        self._set_active(rule_id)
        logger.info(f"Activated admission rule {rule_id}")
        return self.active

    def add(self, rule: AdmissionRule) -> AdmissionRule:
        """Append a rule. New rules are always inactive."""
        if any(existing.id == rule.id for existing in self._rules):
            raise ValueError(f"Admission rule already exists: {rule.id}")
        added = rule.model_copy(update={"active": False})
        self._rules = self._rules + [added]
        return added

    def update(self, rule_id: str, **changes) -> AdmissionRule:
        """Apply field changes to a rule. Activation goes through `activate`."""
        idx = self._index(rule_id)
        changes.pop("id", None)
        changes.pop("active", None)
        merged = self._rules[idx].model_dump() | changes
        updated = AdmissionRule.model_validate(merged)
        rules = list(self._rules)
        rules[idx] = updated
        self._rules = rules
        return updated

    def remove(self, rule_id: str) -> None:
        """Delete a rule. Removing the active rule activates the first remaining one.

        Raises:
            ValueError: If the rule is unknown or is the last remaining rule
        """
        self._index(rule_id)
        if len(self._rules) <= 1:
            raise ValueError("Cannot delete the last admission rule")

        self._rules = [rule for rule in self._rules if rule.id != rule_id]
        if rule_id == self._active_id:
            self._set_active(self._rules[0].id)
            logger.info(
                f"Deleted active admission rule {rule_id}; fell back to {self._active_id}"
            )


def load_rule_set(config_path: Path | None = None) -> RuleSet:
    """Load admission rules from YAML.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        config_path = get_config().admission_rules_path

    if not config_path.exists():
        raise ConfigurationError(f"Admission rules config not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    raw_rules = data.get("admission_rules", [])
    if not raw_rules:
        raise ConfigurationError("No admission_rules defined in configuration")

    try:
        return RuleSet([AdmissionRule.model_validate(raw) for raw in raw_rules])
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid admission rule in {config_path}: {e}")
