from __future__ import annotations

from uuid import uuid4

import pytest

from badger.badges.constants import BadgeCategory, BadgeLevel
from badger.promotions.errors import RuleFormatError
from badger.promotions.rules import (
    ReservedBadge,
    SpecificRule,
    WildcardRule,
    dump_rules,
    evaluate_rules,
    load_snapshot_rules,
    parse_rules,
)

TECH_GOLD_PLUS_ANY_GOLD = [
    {"category": "technical", "level": "gold", "count": 2},
    {"category": "any", "level": "gold", "count": 1},
]


def _badge(category: str, level: str) -> ReservedBadge:
    return ReservedBadge(badge_application_id=uuid4(), category=category, level=level)


def test_parse_rules_builds_tagged_variants() -> None:
    rules = parse_rules(TECH_GOLD_PLUS_ANY_GOLD)

    assert rules == [
        SpecificRule(category=BadgeCategory.TECHNICAL, level=BadgeLevel.GOLD, count=2),
        WildcardRule(level=BadgeLevel.GOLD, count=1),
    ]
    assert dump_rules(rules) == TECH_GOLD_PLUS_ANY_GOLD


@pytest.mark.parametrize(
    "raw_rules",
    [
        [],
        "technical",
        [{"category": "legendary", "level": "gold", "count": 1}],
        [{"category": "technical", "level": "platinum", "count": 1}],
        [{"category": "technical", "level": "gold", "count": 0}],
        [{"category": "technical", "level": "gold", "count": True}],
        [{"category": "technical", "level": "gold"}],
        [
            {"category": "any", "level": "gold", "count": 1},
            {"category": "any", "level": "gold", "count": 2},
        ],
    ],
)
def test_parse_rules_rejects_malformed_input(raw_rules) -> None:
    with pytest.raises(RuleFormatError) as exc_info:
        parse_rules(raw_rules)

    assert exc_info.value.code == "validation_error"
    assert exc_info.value.to_payload()["details"][0]["field"] == "rules"


def test_evaluate_rules_satisfied_without_double_counting() -> None:
    report = evaluate_rules(
        parse_rules(TECH_GOLD_PLUS_ANY_GOLD),
        [
            _badge("technical", "gold"),
            _badge("technical", "gold"),
            _badge("organizational", "gold"),
        ],
    )

    assert report.is_valid is True
    assert report.missing == []
    assert [outcome.as_dict() for outcome in report.requirements] == [
        {"category": "technical", "level": "gold", "required": 2, "current": 2, "satisfied": True},
        {"category": "any", "level": "gold", "required": 1, "current": 1, "satisfied": True},
    ]
    assert sum(outcome.current for outcome in report.requirements) == 3


def test_evaluate_rules_wildcard_does_not_reuse_badge_claimed_by_specific_rule() -> None:
    report = evaluate_rules(
        parse_rules(TECH_GOLD_PLUS_ANY_GOLD),
        [_badge("technical", "gold")],
    )

    assert report.is_valid is False
    assert report.requirements[0].current == 1
    assert report.requirements[1].current == 0
    assert report.missing == [
        {"category": "technical", "level": "gold", "count": 1},
        {"category": "any", "level": "gold", "count": 1},
    ]


def test_evaluate_rules_reports_only_unsatisfied_rules_as_missing() -> None:
    report = evaluate_rules(
        parse_rules(TECH_GOLD_PLUS_ANY_GOLD),
        [_badge("technical", "gold"), _badge("softskilled", "gold")],
    )

    assert report.is_valid is False
    assert report.missing == [{"category": "technical", "level": "gold", "count": 1}]
    assert report.requirements[1].satisfied is True


def test_evaluate_rules_specific_rules_win_regardless_of_template_order() -> None:
    rules = parse_rules(
        [
            {"category": "any", "level": "silver", "count": 1},
            {"category": "organizational", "level": "silver", "count": 1},
        ]
    )

    report = evaluate_rules(
        rules,
        [_badge("organizational", "silver"), _badge("technical", "silver")],
    )

    assert report.is_valid is True
    assert [outcome.category for outcome in report.requirements] == ["any", "organizational"]


def test_evaluate_rules_ignores_badges_of_other_levels() -> None:
    report = evaluate_rules(
        parse_rules([{"category": "any", "level": "bronze", "count": 2}]),
        [_badge("technical", "gold"), _badge("technical", "bronze")],
    )

    assert report.is_valid is False
    assert report.missing == [{"category": "any", "level": "bronze", "count": 1}]


def test_evaluate_rules_does_not_double_count_duplicate_pairs() -> None:
    rules = load_snapshot_rules(
        [
            {"category": "technical", "level": "gold", "count": 1},
            {"category": "technical", "level": "gold", "count": 1},
        ]
    )

    report = evaluate_rules(rules, [_badge("technical", "gold")])

    assert [outcome.current for outcome in report.requirements] == [1, 0]
    assert report.is_valid is False


def test_evaluate_rules_with_no_reserved_badges() -> None:
    report = evaluate_rules(parse_rules(TECH_GOLD_PLUS_ANY_GOLD), [])

    assert report.is_valid is False
    assert [shortfall["count"] for shortfall in report.missing] == [2, 1]
