from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from badger.core.actors import Actor
from badger.core.errors import InputValidationError
from badger.db.models.promotion_templates import PromotionTemplate
from badger.db.repo.promotion_templates_repo import PromotionTemplatesRepo
from badger.db.repo.promotions_repo import PromotionsRepo
from badger.promotions.constants import (
    PROMOTION_LEVEL_MAX_LENGTH,
    PROMOTION_LIST_DEFAULT_LIMIT,
    PromotionPath,
)
from badger.promotions.errors import (
    PromotionForbiddenError,
    PromotionInvalidStatusError,
    PromotionTemplateConflictError,
    PromotionTemplateInUseError,
    PromotionTemplateNotFoundError,
)
from badger.promotions.rules import dump_rules, parse_rules

logger = structlog.get_logger(__name__)


def _require_admin(actor: Actor, *, action: str) -> None:
    if not actor.is_admin:
        raise PromotionForbiddenError(f"Only administrators can {action} promotion templates")


def _normalize_path(path: str) -> str:
    try:
        return PromotionPath(path).value
    except ValueError as exc:
        raise InputValidationError(f"Unknown promotion path {path!r}", field="path") from exc


def _normalize_level(value: str, *, field: str) -> str:
    level = value.strip()
    if not level:
        raise InputValidationError(f"{field} must not be empty", field=field)
    if len(level) > PROMOTION_LEVEL_MAX_LENGTH:
        raise InputValidationError(
            f"{field} must not exceed {PROMOTION_LEVEL_MAX_LENGTH} characters",
            field=field,
        )
    return level


def _normalize_levels(from_level: str, to_level: str) -> tuple[str, str]:
    normalized_from = _normalize_level(from_level, field="from_level")
    normalized_to = _normalize_level(to_level, field="to_level")
    if normalized_from == normalized_to:
        raise InputValidationError("to_level must differ from from_level", field="to_level")
    return normalized_from, normalized_to


def _normalize_name(name: str) -> str:
    normalized = name.strip()
    if not normalized:
        raise InputValidationError("name must not be empty", field="name")
    return normalized


async def _ensure_slot_free(
    session: AsyncSession,
    *,
    path: str,
    from_level: str,
    to_level: str,
    template_id: UUID | None = None,
) -> None:
    existing = await PromotionTemplatesRepo.get_active_for_path_levels(
        session,
        path=path,
        from_level=from_level,
        to_level=to_level,
    )
    if existing is not None and existing.id != template_id:
        raise PromotionTemplateConflictError


async def _ensure_unreferenced(session: AsyncSession, template: PromotionTemplate) -> None:
    promotions_total = await PromotionsRepo.count_for_template(session, template_id=template.id)
    if promotions_total:
        raise PromotionTemplateInUseError(
            template_id=template.id,
            promotions_total=promotions_total,
        )


class PromotionTemplateService:
    @staticmethod
    async def get(session: AsyncSession, *, template_id: UUID) -> PromotionTemplate:
        template = await PromotionTemplatesRepo.get_by_id(session, template_id)
        if template is None:
            raise PromotionTemplateNotFoundError
        return template

    @staticmethod
    async def list_templates(
        session: AsyncSession,
        *,
        path: PromotionPath | None = None,
        from_level: str | None = None,
        to_level: str | None = None,
        is_active: bool | None = True,
        limit: int = PROMOTION_LIST_DEFAULT_LIMIT,
    ) -> list[PromotionTemplate]:
        """List templates ordered by name; only active ones unless ``is_active`` says otherwise."""
        return await PromotionTemplatesRepo.list_filtered(
            session,
            path=path.value if path is not None else None,
            from_level=from_level.strip() if from_level is not None else None,
            to_level=to_level.strip() if to_level is not None else None,
            is_active=is_active,
            limit=limit,
        )

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        actor: Actor,
        name: str,
        path: str,
        from_level: str,
        to_level: str,
        rules: Sequence[dict[str, object]],
        now_utc: datetime | None = None,
    ) -> PromotionTemplate:
        now_utc = now_utc or datetime.now(timezone.utc)
        _require_admin(actor, action="create")

        normalized_name = _normalize_name(name)
        normalized_path = _normalize_path(path)
        normalized_from, normalized_to = _normalize_levels(from_level, to_level)
        parsed_rules = parse_rules(list(rules))

        await _ensure_slot_free(
            session,
            path=normalized_path,
            from_level=normalized_from,
            to_level=normalized_to,
        )

        template = PromotionTemplate(
            id=uuid4(),
            name=normalized_name,
            path=normalized_path,
            from_level=normalized_from,
            to_level=normalized_to,
            rules=dump_rules(parsed_rules),
            is_active=True,
            created_by=actor.user_id,
            created_at=now_utc,
            updated_at=now_utc,
        )
        try:
            async with session.begin_nested():
                await PromotionTemplatesRepo.create(session, template=template)
        except IntegrityError as exc:
            # a concurrent create won the active (path, from, to) slot
            raise PromotionTemplateConflictError from exc

        logger.info(
            "promotion_template_created",
            template_id=str(template.id),
            path=template.path,
            from_level=template.from_level,
            to_level=template.to_level,
            actor_id=str(actor.user_id),
        )
        return template

    @staticmethod
    async def update(
        session: AsyncSession,
        *,
        template_id: UUID,
        actor: Actor,
        name: str | None = None,
        path: str | None = None,
        from_level: str | None = None,
        to_level: str | None = None,
        rules: Sequence[dict[str, object]] | None = None,
        now_utc: datetime | None = None,
    ) -> PromotionTemplate:
        """Apply the provided fields to a template no promotion has been created from.

        ``None`` leaves a field untouched. Templates already referenced by a
        promotion are immutable and can only be deactivated.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        template = await PromotionTemplatesRepo.get_by_id_for_update(session, template_id)
        if template is None:
            raise PromotionTemplateNotFoundError
        _require_admin(actor, action="update")
        await _ensure_unreferenced(session, template)
        if all(value is None for value in (name, path, from_level, to_level, rules)):
            raise InputValidationError("At least one field must be provided")

        normalized_name = _normalize_name(name) if name is not None else template.name
        normalized_path = _normalize_path(path) if path is not None else template.path
        normalized_from, normalized_to = _normalize_levels(
            from_level if from_level is not None else template.from_level,
            to_level if to_level is not None else template.to_level,
        )
        normalized_rules = dump_rules(parse_rules(list(rules))) if rules is not None else None

        if template.is_active:
            await _ensure_slot_free(
                session,
                path=normalized_path,
                from_level=normalized_from,
                to_level=normalized_to,
                template_id=template.id,
            )

        template.name = normalized_name
        template.path = normalized_path
        template.from_level = normalized_from
        template.to_level = normalized_to
        if normalized_rules is not None:
            template.rules = normalized_rules
        template.updated_at = now_utc
        try:
            async with session.begin_nested():
                await session.flush()
        except IntegrityError as exc:
            raise PromotionTemplateConflictError from exc

        logger.info(
            "promotion_template_updated",
            template_id=str(template.id),
            path=template.path,
            from_level=template.from_level,
            to_level=template.to_level,
            actor_id=str(actor.user_id),
        )
        return template

    @staticmethod
    async def delete(
        session: AsyncSession,
        *,
        template_id: UUID,
        actor: Actor,
    ) -> UUID:
        template = await PromotionTemplatesRepo.get_by_id_for_update(session, template_id)
        if template is None:
            raise PromotionTemplateNotFoundError
        _require_admin(actor, action="delete")
        await _ensure_unreferenced(session, template)

        await PromotionTemplatesRepo.delete(session, template=template)
        logger.info(
            "promotion_template_deleted",
            template_id=str(template_id),
            actor_id=str(actor.user_id),
        )
        return template_id

    @staticmethod
    async def deactivate(
        session: AsyncSession,
        *,
        template_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> PromotionTemplate:
        now_utc = now_utc or datetime.now(timezone.utc)
        template = await PromotionTemplatesRepo.get_by_id_for_update(session, template_id)
        if template is None:
            raise PromotionTemplateNotFoundError
        _require_admin(actor, action="deactivate")
        if not template.is_active:
            raise PromotionInvalidStatusError(current_status="inactive", action="deactivate")

        template.is_active = False
        template.updated_at = now_utc
        await session.flush()
        logger.info(
            "promotion_template_deactivated",
            template_id=str(template.id),
            actor_id=str(actor.user_id),
        )
        return template
