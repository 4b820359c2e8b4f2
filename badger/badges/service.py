from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from badger.badges.constants import (
    BADGE_APPLICATION_LIST_DEFAULT_LIMIT,
    BADGE_REASON_MAX_LENGTH,
    BADGE_REVIEW_NOTE_MAX_LENGTH,
    BadgeApplicationAction,
    BadgeApplicationStatus,
    CatalogBadgeStatus,
)
from badger.badges.errors import (
    BadgeApplicationForbiddenError,
    BadgeApplicationIncompleteError,
    BadgeApplicationNotFoundError,
    BadgeApplicationReferencedError,
    CatalogBadgeInactiveError,
    CatalogBadgeNotFoundError,
)
from badger.badges.transitions import BADGE_APPLICATION_ACTION_ROLES, next_badge_application_status
from badger.core.actors import Actor, ActorRole, is_actor_allowed
from badger.core.config import get_settings
from badger.core.errors import InputValidationError
from badger.db.models.badge_applications import BadgeApplication
from badger.db.models.catalog_badges import CatalogBadge
from badger.db.repo.badge_applications_repo import BadgeApplicationsRepo
from badger.db.repo.catalog_badges_repo import CatalogBadgesRepo
from badger.db.repo.promotion_badges_repo import PromotionBadgesRepo

logger = structlog.get_logger(__name__)


def _validate_dates(
    *,
    date_of_application: date | None,
    date_of_fulfillment: date | None,
) -> None:
    if date_of_application is None or date_of_fulfillment is None:
        return
    if date_of_fulfillment < date_of_application:
        raise InputValidationError(
            "Date of fulfillment cannot precede date of application",
            field="date_of_fulfillment",
        )


def _validate_text(value: str | None, *, field: str, max_length: int) -> None:
    if value is not None and len(value) > max_length:
        raise InputValidationError(
            f"{field} must not exceed {max_length} characters",
            field=field,
        )


class BadgeApplicationService:
    @staticmethod
    async def _get_active_catalog_badge(
        session: AsyncSession,
        catalog_badge_id: UUID,
    ) -> CatalogBadge:
        catalog_badge = await CatalogBadgesRepo.get_by_id(session, catalog_badge_id)
        if catalog_badge is None:
            raise CatalogBadgeNotFoundError
        if catalog_badge.status != CatalogBadgeStatus.ACTIVE.value:
            raise CatalogBadgeInactiveError
        return catalog_badge

    @staticmethod
    async def _get_for_update(session: AsyncSession, application_id: UUID) -> BadgeApplication:
        application = await BadgeApplicationsRepo.get_by_id_for_update(session, application_id)
        if application is None:
            raise BadgeApplicationNotFoundError
        return application

    @staticmethod
    def _authorize(
        application: BadgeApplication,
        *,
        actor: Actor,
        action: BadgeApplicationAction,
    ) -> None:
        role = BADGE_APPLICATION_ACTION_ROLES[action]
        if not is_actor_allowed(role, actor=actor, owner_id=application.applicant_id):
            raise BadgeApplicationForbiddenError(
                f"Not allowed to {action.value} this badge application"
            )

    @staticmethod
    def _freeze_catalog_badge(application: BadgeApplication, catalog_badge: CatalogBadge) -> None:
        application.catalog_badge_id = catalog_badge.id
        application.catalog_badge_version = catalog_badge.version
        application.badge_category = catalog_badge.category
        application.badge_level = catalog_badge.level

    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
    ) -> BadgeApplication:
        application = await BadgeApplicationsRepo.get_by_id(session, application_id)
        if application is None:
            raise BadgeApplicationNotFoundError
        if not is_actor_allowed(
            ActorRole.OWNER_OR_ADMIN,
            actor=actor,
            owner_id=application.applicant_id,
        ):
            raise BadgeApplicationForbiddenError
        return application

    @staticmethod
    async def list_for_actor(
        session: AsyncSession,
        *,
        actor: Actor,
        status: BadgeApplicationStatus | None = None,
        applicant_id: UUID | None = None,
        catalog_badge_id: UUID | None = None,
        limit: int = BADGE_APPLICATION_LIST_DEFAULT_LIMIT,
    ) -> list[BadgeApplication]:
        """List badge applications, newest first.

        Non-admin actors only ever see their own applications and may not ask
        for another applicant's.
        """
        if not actor.is_admin:
            if applicant_id is not None and applicant_id != actor.user_id:
                raise BadgeApplicationForbiddenError(
                    "Only administrators can list other applicants' badge applications"
                )
            applicant_id = actor.user_id
        return await BadgeApplicationsRepo.list_filtered(
            session,
            applicant_id=applicant_id,
            status=status.value if status is not None else None,
            catalog_badge_id=catalog_badge_id,
            limit=limit,
        )

    @staticmethod
    async def create_draft(
        session: AsyncSession,
        *,
        actor: Actor,
        catalog_badge_id: UUID,
        date_of_application: date | None = None,
        date_of_fulfillment: date | None = None,
        reason: str | None = None,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        now_utc = now_utc or datetime.now(timezone.utc)
        _validate_dates(
            date_of_application=date_of_application,
            date_of_fulfillment=date_of_fulfillment,
        )
        _validate_text(reason, field="reason", max_length=BADGE_REASON_MAX_LENGTH)

        catalog_badge = await BadgeApplicationService._get_active_catalog_badge(
            session, catalog_badge_id
        )
        application = BadgeApplication(
            id=uuid4(),
            applicant_id=actor.user_id,
            date_of_application=date_of_application,
            date_of_fulfillment=date_of_fulfillment,
            reason=reason,
            status=BadgeApplicationStatus.DRAFT.value,
            created_at=now_utc,
            updated_at=now_utc,
        )
        BadgeApplicationService._freeze_catalog_badge(application, catalog_badge)
        await BadgeApplicationsRepo.create(session, application=application)

        logger.info(
            "badge_application_created",
            badge_application_id=str(application.id),
            actor_id=str(actor.user_id),
            catalog_badge_id=str(catalog_badge.id),
        )
        return application

    @staticmethod
    async def update_draft(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        catalog_badge_id: UUID | None = None,
        date_of_application: date | None = None,
        date_of_fulfillment: date | None = None,
        reason: str | None = None,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        """Apply the provided fields to a draft; ``None`` leaves a field untouched."""
        now_utc = now_utc or datetime.now(timezone.utc)
        application = await BadgeApplicationService._get_for_update(session, application_id)
        BadgeApplicationService._authorize(
            application, actor=actor, action=BadgeApplicationAction.EDIT
        )
        next_badge_application_status(application.status, BadgeApplicationAction.EDIT)

        resolved_application_date = date_of_application or application.date_of_application
        resolved_fulfillment_date = date_of_fulfillment or application.date_of_fulfillment
        _validate_dates(
            date_of_application=resolved_application_date,
            date_of_fulfillment=resolved_fulfillment_date,
        )
        _validate_text(reason, field="reason", max_length=BADGE_REASON_MAX_LENGTH)

        if catalog_badge_id is not None and catalog_badge_id != application.catalog_badge_id:
            catalog_badge = await BadgeApplicationService._get_active_catalog_badge(
                session, catalog_badge_id
            )
            BadgeApplicationService._freeze_catalog_badge(application, catalog_badge)

        application.date_of_application = resolved_application_date
        application.date_of_fulfillment = resolved_fulfillment_date
        if reason is not None:
            application.reason = reason
        application.updated_at = now_utc
        await session.flush()
        return application

    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        now_utc = now_utc or datetime.now(timezone.utc)
        application = await BadgeApplicationService._get_for_update(session, application_id)
        BadgeApplicationService._authorize(
            application, actor=actor, action=BadgeApplicationAction.SUBMIT
        )
        next_status = next_badge_application_status(
            application.status, BadgeApplicationAction.SUBMIT
        )

        if application.date_of_application is None:
            raise BadgeApplicationIncompleteError(
                "Date of application is required before submission",
                field="date_of_application",
            )

        # category and level are frozen from here on
        catalog_badge = await BadgeApplicationService._get_active_catalog_badge(
            session, application.catalog_badge_id
        )
        BadgeApplicationService._freeze_catalog_badge(application, catalog_badge)

        application.status = next_status.value
        application.submitted_at = now_utc
        application.updated_at = now_utc
        await session.flush()

        logger.info(
            "badge_application_submitted",
            badge_application_id=str(application.id),
            actor_id=str(actor.user_id),
            catalog_badge_version=application.catalog_badge_version,
        )
        return application

    @staticmethod
    async def _review(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        action: BadgeApplicationAction,
        note: str | None,
        now_utc: datetime | None,
    ) -> BadgeApplication:
        now_utc = now_utc or datetime.now(timezone.utc)
        application = await BadgeApplicationService._get_for_update(session, application_id)
        BadgeApplicationService._authorize(application, actor=actor, action=action)
        next_status = next_badge_application_status(application.status, action)
        _validate_text(note, field="review_reason", max_length=BADGE_REVIEW_NOTE_MAX_LENGTH)

        application.status = next_status.value
        application.reviewed_by = actor.user_id
        application.reviewed_at = now_utc
        application.review_reason = note
        application.updated_at = now_utc
        await session.flush()

        logger.info(
            f"badge_application_{next_status.value}",
            badge_application_id=str(application.id),
            reviewer_id=str(actor.user_id),
        )
        return application

    @staticmethod
    async def accept(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        note: str | None = None,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        return await BadgeApplicationService._review(
            session,
            application_id=application_id,
            actor=actor,
            action=BadgeApplicationAction.ACCEPT,
            note=note,
            now_utc=now_utc,
        )

    @staticmethod
    async def reject(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        note: str | None = None,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        return await BadgeApplicationService._review(
            session,
            application_id=application_id,
            actor=actor,
            action=BadgeApplicationAction.REJECT,
            note=note,
            now_utc=now_utc,
        )

    @staticmethod
    async def reopen(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> BadgeApplication:
        now_utc = now_utc or datetime.now(timezone.utc)
        application = await BadgeApplicationService._get_for_update(session, application_id)
        BadgeApplicationService._authorize(
            application, actor=actor, action=BadgeApplicationAction.REOPEN
        )
        next_status = next_badge_application_status(
            application.status,
            BadgeApplicationAction.REOPEN,
            allow_reopen=get_settings().badge_allow_rejected_resubmission,
        )

        application.status = next_status.value
        application.submitted_at = None
        application.reviewed_by = None
        application.reviewed_at = None
        application.review_reason = None
        application.updated_at = now_utc
        await session.flush()

        logger.info(
            "badge_application_reopened",
            badge_application_id=str(application.id),
            actor_id=str(actor.user_id),
        )
        return application

    @staticmethod
    async def delete(
        session: AsyncSession,
        *,
        application_id: UUID,
        actor: Actor,
    ) -> UUID:
        application = await BadgeApplicationService._get_for_update(session, application_id)
        BadgeApplicationService._authorize(
            application, actor=actor, action=BadgeApplicationAction.DELETE
        )
        next_badge_application_status(application.status, BadgeApplicationAction.DELETE)

        holder_promotion_id = await PromotionBadgesRepo.get_unconsumed_holder_promotion_id(
            session,
            badge_application_id=application.id,
        )
        if holder_promotion_id is not None:
            logger.error(
                "badge_application_delete_blocked_by_reservation",
                badge_application_id=str(application.id),
                promotion_id=str(holder_promotion_id),
            )
            raise BadgeApplicationReferencedError(
                badge_application_id=application.id,
                promotion_id=holder_promotion_id,
            )

        await BadgeApplicationsRepo.delete(session, application=application)
        logger.info(
            "badge_application_deleted",
            badge_application_id=str(application_id),
            actor_id=str(actor.user_id),
        )
        return application_id

    @staticmethod
    async def mark_used_in_promotion(
        session: AsyncSession,
        *,
        application_ids: Sequence[UUID],
        now_utc: datetime | None = None,
    ) -> list[BadgeApplication]:
        """Move accepted applications to used_in_promotion.

        Only the promotion approval flow calls this; every id must exist and be
        accepted, otherwise nothing is changed and the caller's transaction is
        expected to roll back.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        unique_ids = list(dict.fromkeys(application_ids))
        applications = await BadgeApplicationsRepo.list_by_ids_for_update(session, unique_ids)
        if len(applications) != len(unique_ids):
            raise BadgeApplicationNotFoundError

        next_statuses = [
            next_badge_application_status(
                application.status, BadgeApplicationAction.MARK_USED_IN_PROMOTION
            )
            for application in applications
        ]
        for application, next_status in zip(applications, next_statuses):
            application.status = next_status.value
            application.updated_at = now_utc
        await session.flush()
        return applications
