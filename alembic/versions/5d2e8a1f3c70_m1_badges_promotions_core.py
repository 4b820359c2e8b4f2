"""m1_badges_promotions_core

Revision ID: 5d2e8a1f3c70
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5d2e8a1f3c70"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

UPDATED_AT_TABLES = ("badge_applications", "promotion_templates", "promotions")


def upgrade() -> None:
    op.create_table(
        "catalog_badges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("level", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'active'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "category IN ('technical','organizational','softskilled')",
            name="ck_catalog_badges_category",
        ),
        sa.CheckConstraint("level IN ('gold','silver','bronze')", name="ck_catalog_badges_level"),
        sa.CheckConstraint("status IN ('active','inactive')", name="ck_catalog_badges_status"),
        sa.CheckConstraint("version >= 1", name="ck_catalog_badges_version_positive"),
    )
    op.create_index("idx_catalog_badges_category_level", "catalog_badges", ["category", "level"])
    op.create_index("idx_catalog_badges_status_created_at", "catalog_badges", ["status", "created_at"])

    op.create_table(
        "badge_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("applicant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("catalog_badge_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("catalog_badge_version", sa.Integer(), nullable=False),
        sa.Column("badge_category", sa.String(32), nullable=False),
        sa.Column("badge_level", sa.String(16), nullable=False),
        sa.Column("date_of_application", sa.Date(), nullable=True),
        sa.Column("date_of_fulfillment", sa.Date(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft','submitted','accepted','rejected','used_in_promotion')",
            name="ck_badge_applications_status",
        ),
        sa.CheckConstraint(
            "badge_category IN ('technical','organizational','softskilled')",
            name="ck_badge_applications_badge_category",
        ),
        sa.CheckConstraint(
            "badge_level IN ('gold','silver','bronze')",
            name="ck_badge_applications_badge_level",
        ),
        sa.CheckConstraint(
            "date_of_fulfillment IS NULL OR date_of_application IS NULL "
            "OR date_of_fulfillment >= date_of_application",
            name="ck_badge_applications_fulfillment_after_application",
        ),
        sa.CheckConstraint(
            "status = 'draft' OR date_of_application IS NOT NULL",
            name="ck_badge_applications_submitted_has_application_date",
        ),
        sa.ForeignKeyConstraint(["catalog_badge_id"], ["catalog_badges.id"]),
    )
    op.create_index("idx_badge_applications_applicant", "badge_applications", ["applicant_id"])
    op.create_index("idx_badge_applications_catalog_badge", "badge_applications", ["catalog_badge_id"])
    op.create_index("idx_badge_applications_status", "badge_applications", ["status"])
    op.create_index("idx_badge_applications_created_at", "badge_applications", ["created_at"])

    op.create_table(
        "promotion_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("path", sa.String(32), nullable=False),
        sa.Column("from_level", sa.String(16), nullable=False),
        sa.Column("to_level", sa.String(16), nullable=False),
        sa.Column("rules", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "path IN ('technical','financial','management')",
            name="ck_promotion_templates_path",
        ),
        sa.CheckConstraint("jsonb_typeof(rules) = 'array'", name="ck_promotion_templates_rules_array"),
    )
    op.create_index(
        "idx_promotion_templates_path_from_to",
        "promotion_templates",
        ["path", "from_level", "to_level"],
    )
    op.create_index(
        "uq_promotion_templates_active_path_levels",
        "promotion_templates",
        ["path", "from_level", "to_level"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "promotions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("path", sa.String(32), nullable=False),
        sa.Column("from_level", sa.String(16), nullable=False),
        sa.Column("to_level", sa.String(16), nullable=False),
        sa.Column("rules_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft','submitted','approved','rejected')",
            name="ck_promotions_status",
        ),
        sa.CheckConstraint(
            "status <> 'approved' OR (approved_at IS NOT NULL AND approved_by IS NOT NULL)",
            name="ck_promotions_approved_metadata",
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR (rejected_at IS NOT NULL AND length(reject_reason) > 0)",
            name="ck_promotions_rejected_metadata",
        ),
        sa.ForeignKeyConstraint(["template_id"], ["promotion_templates.id"]),
    )
    op.create_index("idx_promotions_created_by", "promotions", ["created_by"])
    op.create_index("idx_promotions_status_created_at", "promotions", ["status", "created_at"])
    op.create_index("idx_promotions_template", "promotions", ["template_id"])

    op.create_table(
        "promotion_badges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("promotion_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("badge_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assigned_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["badge_application_id"],
            ["badge_applications.id"],
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "promotion_id",
            "badge_application_id",
            name="uq_promotion_badges_promotion_badge_application",
        ),
    )
    op.create_index("idx_promotion_badges_promotion", "promotion_badges", ["promotion_id"])
    op.create_index(
        "uq_promotion_badges_badge_application_unconsumed",
        "promotion_badges",
        ["badge_application_id"],
        unique=True,
        postgresql_where=sa.text("consumed = false"),
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            IF NEW.updated_at IS NOT DISTINCT FROM OLD.updated_at THEN
                NEW.updated_at = now();
            END IF;
            RETURN NEW;
        END;
        $$;
        """
    )
    for table_name in UPDATED_AT_TABLES:
        op.execute(
            f"""
            CREATE TRIGGER trg_{table_name}_touch_updated_at
            BEFORE UPDATE ON {table_name}
            FOR EACH ROW
            EXECUTE FUNCTION fn_touch_updated_at();
            """
        )


def downgrade() -> None:
    for table_name in UPDATED_AT_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table_name}_touch_updated_at ON {table_name};")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")

    op.drop_index("uq_promotion_badges_badge_application_unconsumed", table_name="promotion_badges")
    op.drop_index("idx_promotion_badges_promotion", table_name="promotion_badges")
    op.drop_table("promotion_badges")

    op.drop_index("idx_promotions_template", table_name="promotions")
    op.drop_index("idx_promotions_status_created_at", table_name="promotions")
    op.drop_index("idx_promotions_created_by", table_name="promotions")
    op.drop_table("promotions")

    op.drop_index("uq_promotion_templates_active_path_levels", table_name="promotion_templates")
    op.drop_index("idx_promotion_templates_path_from_to", table_name="promotion_templates")
    op.drop_table("promotion_templates")

    op.drop_index("idx_badge_applications_created_at", table_name="badge_applications")
    op.drop_index("idx_badge_applications_status", table_name="badge_applications")
    op.drop_index("idx_badge_applications_catalog_badge", table_name="badge_applications")
    op.drop_index("idx_badge_applications_applicant", table_name="badge_applications")
    op.drop_table("badge_applications")

    op.drop_index("idx_catalog_badges_status_created_at", table_name="catalog_badges")
    op.drop_index("idx_catalog_badges_category_level", table_name="catalog_badges")
    op.drop_table("catalog_badges")
