"""initial schema, sailms registrations

Revision ID: 001_initial
Create Date: 18/10/2026
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '001_initial'
down_revision = None

# Valeurs des Enums (persistées au caractère près)
USER_ROLE = ('crew', 'owner', 'admin')
JOURNEY_STATE = ('In planning', 'Published', 'Archived')
QUESTION_TYPE = ('text', 'yes_no', 'multiple_choice', 'rating')
REGISTRATION_STATUS = ('Pending approval', 'Approved', 'Not approved', 'Cancelled')
ASSESSMENT_STATUS = ('not_required', 'queued', 'completed', 'needs_manual_review')
NOTIFICATION_TYPE = ('new_registration', 'registration_approved', 'registration_denied', 'ai_review_needed')

ENUMS = {
    "userrole": USER_ROLE,
    "journeystate": JOURNEY_STATE,
    "questiontype": QUESTION_TYPE,
    "registrationstatus": REGISTRATION_STATUS,
    "assessmentstatus": ASSESSMENT_STATUS,
    "notificationtype": NOTIFICATION_TYPE,
}


def _enum(values, name):
    return postgresql.ENUM(*values, name=name, create_type=False)


def upgrade() -> None:
    # ── 1. CREATION MANUELLE DES TYPES ENUM (SÉCURISÉE) ──
    for name, values in ENUMS.items():
        vals_str = ", ".join([f"'{v}'" for v in values])
        op.execute(f"""
            DO $$
            BEGIN
                IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN
                    CREATE TYPE {name} AS ENUM ({vals_str});
                END IF;
            END $$;
        """)

    # ── 2. CREATION DES TABLES ──
    # create_type=False : les types existent déjà (étape 1)

    op.create_table("users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("username", sa.String, nullable=True),
        sa.Column("full_name", sa.String, nullable=True),
        sa.Column("role", _enum(USER_ROLE, 'userrole'), nullable=False, server_default="crew"),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table("crew_profiles",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False),
        sa.Column("sailing_experience", sa.Integer, nullable=True),
        sa.Column("skills", sa.JSON, nullable=True),
        sa.Column("risk_level", sa.JSON, nullable=True),
        sa.Column("ai_processing_consent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table("boats",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String, nullable=False),
    )
    op.create_index("ix_boats_owner_id", "boats", ["owner_id"])

    op.create_table("journeys",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("boat_id", sa.Integer, sa.ForeignKey("boats.id"), nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("state", _enum(JOURNEY_STATE, 'journeystate'), nullable=False, server_default="In planning"),
        sa.Column("skills", sa.JSON, nullable=True),
        sa.Column("risk_level", sa.JSON, nullable=True),
        sa.Column("min_experience_level", sa.Integer, nullable=True),
        sa.Column("auto_approval_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("auto_approval_threshold", sa.Integer, nullable=False, server_default="80"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "auto_approval_threshold >= 0 AND auto_approval_threshold <= 100",
            name="journeys_auto_approval_threshold_check",
        ),
    )
    op.create_index("ix_journeys_boat_id", "journeys", ["boat_id"])

    op.create_table("legs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("journey_id", sa.Integer, sa.ForeignKey("journeys.id"), nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("skills", sa.JSON, nullable=True),
        sa.Column("risk_level", sa.String, nullable=True),
        sa.Column("min_experience_level", sa.Integer, nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_legs_journey_id", "legs", ["journey_id"])

    op.create_table("journey_requirements",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("journey_id", sa.Integer, sa.ForeignKey("journeys.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_text", sa.String, nullable=False),
        sa.Column("question_type", _enum(QUESTION_TYPE, 'questiontype'), nullable=False),
        sa.Column("options", sa.JSON, nullable=True),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("weight", sa.Float, nullable=False, server_default="1.0"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_journey_requirements_journey_id", "journey_requirements", ["journey_id"])

    op.create_table("registrations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("leg_id", sa.Integer, sa.ForeignKey("legs.id"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", _enum(REGISTRATION_STATUS, 'registrationstatus'), nullable=False, server_default="Pending approval"),
        sa.Column("notes", sa.String, nullable=True),
        sa.Column("ai_match_score", sa.Integer, nullable=True),
        sa.Column("ai_match_reasoning", sa.String, nullable=True),
        sa.Column("auto_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("assessment_status", _enum(ASSESSMENT_STATUS, 'assessmentstatus'), nullable=False, server_default="not_required"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("leg_id", "user_id", name="uq_registration_leg_user"),
        sa.CheckConstraint(
            "ai_match_score >= 0 AND ai_match_score <= 100",
            name="registrations_ai_match_score_check",
        ),
    )
    op.create_index("ix_registrations_leg_id", "registrations", ["leg_id"])
    op.create_index("ix_registrations_user_id", "registrations", ["user_id"])

    op.create_table("registration_answers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("registration_id", sa.Integer, sa.ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requirement_id", sa.Integer, sa.ForeignKey("journey_requirements.id", ondelete="CASCADE"), nullable=False),
        sa.Column("answer_text", sa.String, nullable=True),
        sa.Column("answer_json", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("registration_id", "requirement_id", name="uq_answer_registration_requirement"),
    )
    op.create_index("ix_registration_answers_registration_id", "registration_answers", ["registration_id"])
    op.create_index("ix_registration_answers_requirement_id", "registration_answers", ["requirement_id"])

    op.create_table("notifications",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", _enum(NOTIFICATION_TYPE, 'notificationtype'), nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("message", sa.String, nullable=False),
        sa.Column("link", sa.String, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    for table in (
        "notifications",
        "registration_answers",
        "registrations",
        "journey_requirements",
        "legs",
        "journeys",
        "boats",
        "crew_profiles",
        "users",
    ):
        op.drop_table(table)

    for name in ENUMS:
        op.execute(f"DROP TYPE IF EXISTS {name}")
