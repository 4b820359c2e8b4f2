from __future__ import annotations

from uuid import uuid4

import pytest

from badger.core.errors import InputValidationError
from badger.db.session import SessionLocal
from badger.promotions.constants import PromotionPath
from badger.promotions.errors import (
    PromotionForbiddenError,
    PromotionInvalidStatusError,
    PromotionTemplateConflictError,
    PromotionTemplateInactiveError,
    PromotionTemplateInUseError,
    PromotionTemplateNotFoundError,
    RuleFormatError,
)
from badger.promotions.service import PromotionService
from badger.promotions.templates import PromotionTemplateService
from tests.integration.badger_fixtures import (
    ADMIN,
    TECH_GOLD_PLUS_ANY_GOLD,
    create_draft_promotion,
    new_user,
)


async def _create(actor=ADMIN, **overrides):
    params = {
        "name": "Senior engineer",
        "path": "technical",
        "from_level": "S1",
        "to_level": "S2",
        "rules": TECH_GOLD_PLUS_ANY_GOLD,
    }
    params.update(overrides)
    async with SessionLocal.begin() as session:
        return await PromotionTemplateService.create(session, actor=actor, **params)


@pytest.mark.asyncio
async def test_create_template_normalizes_rules() -> None:
    template = await _create()

    assert template.is_active is True
    assert template.rules == TECH_GOLD_PLUS_ANY_GOLD


@pytest.mark.asyncio
async def test_create_template_rejects_non_admin_and_bad_rules() -> None:
    with pytest.raises(PromotionForbiddenError):
        await _create(actor=new_user())
    with pytest.raises(RuleFormatError):
        await _create(rules=[{"category": "technical", "level": "gold", "count": -1}])


@pytest.mark.asyncio
async def test_only_one_active_template_per_path_and_levels() -> None:
    first = await _create()

    with pytest.raises(PromotionTemplateConflictError):
        await _create()

    async with SessionLocal.begin() as session:
        await PromotionTemplateService.deactivate(session, template_id=first.id, actor=ADMIN)

    replacement = await _create()
    assert replacement.id != first.id


@pytest.mark.asyncio
async def test_deactivate_twice_is_invalid_status() -> None:
    template = await _create()
    async with SessionLocal.begin() as session:
        await PromotionTemplateService.deactivate(session, template_id=template.id, actor=ADMIN)

    with pytest.raises(PromotionInvalidStatusError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.deactivate(
                session, template_id=template.id, actor=ADMIN
            )


@pytest.mark.asyncio
async def test_promotion_requires_existing_active_template() -> None:
    owner = new_user()
    template = await _create()
    async with SessionLocal.begin() as session:
        await PromotionTemplateService.deactivate(session, template_id=template.id, actor=ADMIN)

    with pytest.raises(PromotionTemplateNotFoundError):
        async with SessionLocal.begin() as session:
            await PromotionService.create(session, actor=owner, template_id=uuid4())
    with pytest.raises(PromotionTemplateInactiveError):
        async with SessionLocal.begin() as session:
            await PromotionService.create(session, actor=owner, template_id=template.id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("from_level", "to_level", "field"),
    [
        ("   ", "S2", "from_level"),
        ("S1", "", "to_level"),
        ("S1", "S1", "to_level"),
        (" S1 ", "S1", "to_level"),
        ("S1", "S" * 17, "to_level"),
    ],
)
async def test_create_template_validates_levels(from_level, to_level, field) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        await _create(from_level=from_level, to_level=to_level)

    assert exc_info.value.to_payload()["details"][0]["field"] == field


@pytest.mark.asyncio
async def test_create_template_strips_levels() -> None:
    template = await _create(from_level=" S1 ", to_level="S2 ")

    assert (template.from_level, template.to_level) == ("S1", "S2")


@pytest.mark.asyncio
async def test_list_templates_filters_by_active_flag_and_path() -> None:
    active = await _create(name="B technical", from_level="S1", to_level="S2")
    retired = await _create(name="A technical", from_level="S2", to_level="S3")
    await _create(name="C financial", path="financial", from_level="S1", to_level="S2")
    async with SessionLocal.begin() as session:
        await PromotionTemplateService.deactivate(session, template_id=retired.id, actor=ADMIN)

    async with SessionLocal.begin() as session:
        technical_active = await PromotionTemplateService.list_templates(
            session, path=PromotionPath.TECHNICAL
        )
        technical_inactive = await PromotionTemplateService.list_templates(
            session, path=PromotionPath.TECHNICAL, is_active=False
        )
        all_active = await PromotionTemplateService.list_templates(session, limit=1)

    assert [template.id for template in technical_active] == [active.id]
    assert [template.id for template in technical_inactive] == [retired.id]
    assert [template.name for template in all_active] == ["B technical"]


@pytest.mark.asyncio
async def test_update_unreferenced_template() -> None:
    template = await _create()
    other = await _create(from_level="S2", to_level="S3")

    async with SessionLocal.begin() as session:
        updated = await PromotionTemplateService.update(
            session,
            template_id=template.id,
            actor=ADMIN,
            name="Staff engineer",
            to_level="S4",
            rules=[{"category": "technical", "level": "silver", "count": 3}],
        )

    assert updated.name == "Staff engineer"
    assert (updated.from_level, updated.to_level) == ("S1", "S4")
    assert updated.rules == [{"category": "technical", "level": "silver", "count": 3}]

    with pytest.raises(PromotionTemplateConflictError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.update(
                session,
                template_id=template.id,
                actor=ADMIN,
                from_level=other.from_level,
                to_level=other.to_level,
            )
    with pytest.raises(InputValidationError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.update(
                session, template_id=template.id, actor=ADMIN, to_level="S1"
            )
    with pytest.raises(PromotionForbiddenError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.update(
                session, template_id=template.id, actor=new_user(), name="Nope"
            )


@pytest.mark.asyncio
async def test_referenced_template_cannot_be_updated_or_deleted() -> None:
    template = await _create()
    await create_draft_promotion(new_user(), template_id=template.id)

    with pytest.raises(PromotionTemplateInUseError) as exc_info:
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.update(
                session, template_id=template.id, actor=ADMIN, name="Renamed"
            )
    assert exc_info.value.promotions_total == 1

    with pytest.raises(PromotionTemplateInUseError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.delete(session, template_id=template.id, actor=ADMIN)

    async with SessionLocal.begin() as session:
        still_there = await PromotionTemplateService.get(session, template_id=template.id)
    assert still_there.name == "Senior engineer"


@pytest.mark.asyncio
async def test_delete_unreferenced_template() -> None:
    template = await _create()

    async with SessionLocal.begin() as session:
        deleted_id = await PromotionTemplateService.delete(
            session, template_id=template.id, actor=ADMIN
        )
    assert deleted_id == template.id

    with pytest.raises(PromotionTemplateNotFoundError):
        async with SessionLocal.begin() as session:
            await PromotionTemplateService.get(session, template_id=template.id)
