"""User-defined rules loaded from a JSON file.

File shape::

    {"rules": [{"id": "no_pii", "description": "...", "pattern": "ssn|passport",
                "applies_to": "all", "severity": "BLOCKING",
                "risk_dimension": "constraint", "risk_weight": 10}]}
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Any, Iterable, Literal

import orjson
from pydantic import BaseModel, ValidationError, field_validator

from prompt_optimizer.config import settings
from prompt_optimizer.logging import get_logger
from prompt_optimizer.types import Assumption, Question, RuleResult, is_code_task, is_prose_task

from .risk import RiskWeight

logger = get_logger(__name__)

MAX_PATTERN_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 200
ID_RE = re.compile(r"^[a-z][a-z0-9_]{0,63}$")


class CustomRuleError(ValueError):
    """Raised when a custom-rule file cannot be parsed at all."""


class CustomRule(BaseModel):
    id: str
    description: str
    pattern: str
    negative_pattern: str | None = None
    applies_to: Literal["code", "prose", "all"]
    severity: Literal["BLOCKING", "NON-BLOCKING"]
    risk_dimension: Literal["underspec", "hallucination", "scope", "constraint"]
    risk_weight: int

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not ID_RE.match(value):
            raise ValueError(f"id must match {ID_RE.pattern} (got: {value})")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description is required")
        if len(value) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"description max {MAX_DESCRIPTION_LENGTH} chars")
        return value

    @field_validator("pattern", "negative_pattern")
    @classmethod
    def _check_regex(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not value:
            raise ValueError("pattern must not be empty")
        if len(value) > MAX_PATTERN_LENGTH:
            raise ValueError(f"pattern max {MAX_PATTERN_LENGTH} chars")
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"not a valid regex: {exc}") from exc
        return value

    @field_validator("risk_weight", mode="before")
    @classmethod
    def _check_weight(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("risk_weight must be an integer")
        if not 1 <= value <= 25:
            raise ValueError(f"risk_weight must be 1-25 (got: {value})")
        return value

    @property
    def rule_name(self) -> str:
        return f"custom_{self.id}"

    @property
    def blocking(self) -> bool:
        return self.severity == "BLOCKING"


def validate_rule(data: Any) -> list[str]:
    """Return human-readable validation errors; empty means the record is valid."""
    if not isinstance(data, dict):
        return ["rule must be an object"]
    try:
        CustomRule.model_validate(data)
    except ValidationError as exc:
        errors = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"]) or "rule"
            errors.append(f"{loc}: {err['msg']}")
        return errors
    return []


def read_rules_file(path: Path) -> list[Any]:
    try:
        payload = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        raise CustomRuleError(f"{path}: invalid JSON ({exc})") from exc
    rules = payload.get("rules") if isinstance(payload, dict) else None
    if not isinstance(rules, list):
        raise CustomRuleError(f"{path}: expected an object with a 'rules' array")
    return rules


def load_custom_rules(path: str | Path | None = None) -> list[CustomRule]:
    """Load, validate, cap and sort rules. A missing file means no rules."""
    rules_path = Path(path or settings.CUSTOM_RULES_PATH).expanduser()
    if not rules_path.exists():
        logger.debug(f"No custom rules file at {rules_path}")
        return []

    valid: list[CustomRule] = []
    for idx, raw in enumerate(read_rules_file(rules_path)):
        errors = validate_rule(raw)
        if errors:
            rule_id = raw.get("id", f"#{idx}") if isinstance(raw, dict) else f"#{idx}"
            logger.warning(f"Skipping invalid custom rule ({rule_id}): {'; '.join(errors)}")
            continue
        valid.append(CustomRule.model_validate(raw))

    if len(valid) > settings.MAX_CUSTOM_RULES:
        logger.warning(
            f"Loaded {len(valid)} custom rules, capping at {settings.MAX_CUSTOM_RULES}"
        )
        valid = valid[: settings.MAX_CUSTOM_RULES]

    valid.sort(key=lambda r: r.id)
    logger.debug(f"Loaded {len(valid)} custom rules from {rules_path}")
    return valid


def custom_rule_applies(rule: CustomRule, task_type: str | None) -> bool:
    if rule.applies_to == "all":
        return True
    if rule.applies_to == "code":
        return is_code_task(task_type)
    return is_prose_task(task_type)


def _search(pattern: str, prompt: str, rule: CustomRule) -> bool | None:
    try:
        return re.search(pattern, prompt) is not None
    except re.error as exc:
        logger.warning(f"Skipping custom rule {rule.id}: pattern failed to compile ({exc})")
        return None


def evaluate_custom_rules(
    rules: Iterable[CustomRule], prompt: str, task_type: str | None
) -> list[RuleResult]:
    """Triggered results for every rule whose pattern matches and negative pattern does not."""
    results: list[RuleResult] = []
    for rule in rules:
        if not custom_rule_applies(rule, task_type):
            continue
        if not _search(rule.pattern, prompt, rule):
            continue
        if rule.negative_pattern:
            negative = _search(rule.negative_pattern, prompt, rule)
            if negative is None or negative:
                continue

        if rule.blocking:
            results.append(
                RuleResult(
                    rule_name=rule.rule_name,
                    severity="blocking",
                    triggered=True,
                    message=rule.description,
                    question=Question(
                        id=f"q_custom_{rule.id}",
                        question=f"{rule.description} How should this be addressed?",
                        reason=f"Custom rule '{rule.id}' matched the prompt.",
                    ),
                )
            )
        else:
            results.append(
                RuleResult(
                    rule_name=rule.rule_name,
                    severity="non_blocking",
                    triggered=True,
                    message=rule.description,
                    assumption=Assumption(
                        id=f"a_custom_{rule.id}",
                        assumption=rule.description,
                        confidence="medium",
                        impact="medium",
                    ),
                )
            )
    return results


def custom_risk_weights(rules: Iterable[CustomRule]) -> dict[str, RiskWeight]:
    return {r.rule_name: RiskWeight(r.risk_dimension, r.risk_weight, 1.0) for r in rules}


def rule_set_hash(rules: Iterable[CustomRule]) -> str:
    """SHA-256 over the id-sorted rule fields; empty string for no rules."""
    ordered = sorted(rules, key=lambda r: r.id)
    if not ordered:
        return ""
    payload = "\n".join(
        "\n".join(
            [
                r.id,
                r.pattern,
                r.negative_pattern or "",
                r.applies_to,
                r.severity,
                r.risk_dimension,
                str(r.risk_weight),
            ]
        )
        for r in ordered
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
