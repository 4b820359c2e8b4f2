"""Promotion rule evaluation.

A template carries an ordered list of rules. Specific rules name a badge
category and level; wildcard rules accept any category at their level. Each
reserved badge counts towards at most one rule: specific rules are filled
first, then wildcard rules take from whatever is left.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import assert_never
from uuid import UUID

import structlog

from badger.badges.constants import BadgeCategory, BadgeLevel
from badger.promotions.constants import WILDCARD_CATEGORY
from badger.promotions.errors import RuleFormatError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SpecificRule:
    category: BadgeCategory
    level: BadgeLevel
    count: int


@dataclass(frozen=True, slots=True)
class WildcardRule:
    level: BadgeLevel
    count: int


Rule = SpecificRule | WildcardRule


@dataclass(frozen=True, slots=True)
class ReservedBadge:
    badge_application_id: UUID
    category: str
    level: str


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    category: str
    level: str
    required: int
    current: int

    @property
    def satisfied(self) -> bool:
        return self.current >= self.required

    def as_dict(self) -> dict[str, object]:
        return {
            "category": self.category,
            "level": self.level,
            "required": self.required,
            "current": self.current,
            "satisfied": self.satisfied,
        }


@dataclass(frozen=True, slots=True)
class ValidationReport:
    requirements: tuple[RuleOutcome, ...]

    @property
    def is_valid(self) -> bool:
        return all(outcome.satisfied for outcome in self.requirements)

    @property
    def missing(self) -> list[dict[str, object]]:
        return [
            {
                "category": outcome.category,
                "level": outcome.level,
                "count": outcome.required - outcome.current,
            }
            for outcome in self.requirements
            if not outcome.satisfied
        ]


def rule_category(rule: Rule) -> str:
    match rule:
        case SpecificRule(category=category):
            return category.value
        case WildcardRule():
            return WILDCARD_CATEGORY
        case _:
            assert_never(rule)


def _parse_rule(raw: object, *, index: int) -> Rule:
    if not isinstance(raw, dict):
        raise RuleFormatError(f"Rule #{index} must be an object")

    raw_count = raw.get("count")
    if isinstance(raw_count, bool) or not isinstance(raw_count, int) or raw_count < 1:
        raise RuleFormatError(f"Rule #{index} count must be a positive integer")

    try:
        level = BadgeLevel(raw.get("level"))
    except ValueError as exc:
        raise RuleFormatError(f"Rule #{index} has unknown level {raw.get('level')!r}") from exc

    raw_category = raw.get("category")
    if raw_category == WILDCARD_CATEGORY:
        return WildcardRule(level=level, count=raw_count)
    try:
        category = BadgeCategory(raw_category)
    except ValueError as exc:
        raise RuleFormatError(f"Rule #{index} has unknown category {raw_category!r}") from exc
    return SpecificRule(category=category, level=level, count=raw_count)


def parse_rules(raw_rules: object) -> list[Rule]:
    """Parse the JSON form of a template's rules, rejecting duplicates."""
    if not isinstance(raw_rules, list) or not raw_rules:
        raise RuleFormatError("Rules must be a non-empty list")

    rules: list[Rule] = []
    seen: set[tuple[str, str]] = set()
    for index, raw in enumerate(raw_rules):
        rule = _parse_rule(raw, index=index)
        pair = (rule_category(rule), rule.level.value)
        if pair in seen:
            raise RuleFormatError(f"Duplicate rule for category {pair[0]} and level {pair[1]}")
        seen.add(pair)
        rules.append(rule)
    return rules


def load_snapshot_rules(raw_rules: Iterable[dict[str, object]]) -> list[Rule]:
    """Parse stored rules without the duplicate check; evaluation handles duplicates."""
    return [_parse_rule(raw, index=index) for index, raw in enumerate(raw_rules)]


def dump_rules(rules: Sequence[Rule]) -> list[dict[str, object]]:
    return [
        {"category": rule_category(rule), "level": rule.level.value, "count": rule.count}
        for rule in rules
    ]


def _take(pool: list[ReservedBadge], *, count: int, category: str | None, level: str) -> int:
    taken = 0
    index = 0
    while index < len(pool) and taken < count:
        badge = pool[index]
        if badge.level == level and (category is None or badge.category == category):
            pool.pop(index)
            taken += 1
            continue
        index += 1
    return taken


def evaluate_rules(
    rules: Sequence[Rule],
    badges: Sequence[ReservedBadge],
) -> ValidationReport:
    pool = list(badges)
    current_by_index: dict[int, int] = {}
    seen_pairs: set[tuple[str, str]] = set()

    def _fill(index: int, rule: Rule, category: str | None) -> None:
        pair = (rule_category(rule), rule.level.value)
        if pair in seen_pairs:
            logger.error(
                "promotion_rules_duplicate_pair",
                category=pair[0],
                level=pair[1],
            )
            current_by_index[index] = 0
            return
        seen_pairs.add(pair)
        current_by_index[index] = _take(
            pool,
            count=rule.count,
            category=category,
            level=rule.level.value,
        )

    for index, rule in enumerate(rules):
        if isinstance(rule, SpecificRule):
            _fill(index, rule, rule.category.value)
    for index, rule in enumerate(rules):
        if isinstance(rule, WildcardRule):
            _fill(index, rule, None)

    return ValidationReport(
        requirements=tuple(
            RuleOutcome(
                category=rule_category(rule),
                level=rule.level.value,
                required=rule.count,
                current=current_by_index[index],
            )
            for index, rule in enumerate(rules)
        )
    )
