"""itinerary and rfq tables

Revision ID: c1a2b3d4e5f6
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision = "c1a2b3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        )
    ]
    if updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            )
        )
    return cols


def upgrade() -> None:
    # --- suppliers ---
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("supplier_type", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_suppliers_tenant_type", "suppliers", ["tenant_id", "supplier_type"]
    )

    # --- itineraries ---
    op.create_table(
        "itineraries",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("agency_id", sa.String(), nullable=True),
        sa.Column("created_by_user_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("pax_adults", sa.Integer(), nullable=False),
        sa.Column(
            "pax_children", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status", sa.String(), nullable=False, server_default=sa.text("'draft'")
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "(agency_id IS NULL) <> (created_by_user_id IS NULL)",
            name="ck_itinerary_single_owner",
        ),
        sa.CheckConstraint("start_date <= end_date", name="ck_itinerary_date_range"),
        sa.CheckConstraint("pax_children >= 0", name="ck_itinerary_pax_children"),
    )
    op.create_index("ix_itineraries_tenant_id", "itineraries", ["tenant_id"])
    op.create_index("ix_itineraries_agency_id", "itineraries", ["agency_id"])
    op.create_index(
        "ix_itineraries_created_by_user_id", "itineraries", ["created_by_user_id"]
    )
    op.create_index(
        "ix_itineraries_agency_status", "itineraries", ["agency_id", "status"]
    )

    # --- itinerary_days ---
    op.create_table(
        "itinerary_days",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "itinerary_id",
            sa.String(),
            sa.ForeignKey("itineraries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint(
            "itinerary_id", "day_number", name="uq_itinerary_day_number"
        ),
    )
    op.create_index(
        "ix_itinerary_days_itinerary_id", "itinerary_days", ["itinerary_id"]
    )

    # --- itinerary_events ---
    op.create_table(
        "itinerary_events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column(
            "itinerary_id",
            sa.String(),
            sa.ForeignKey("itineraries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "day_id",
            sa.String(),
            sa.ForeignKey("itinerary_days.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column(
            "category",
            sa.String(),
            nullable=False,
            server_default=sa.text("'uncategorized'"),
        ),
        sa.Column("summary", sa.String(), nullable=False),
        sa.Column(
            "details", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        sa.Column("supplier_ref", JSONB, nullable=True),
        sa.Column(
            "quantity", sa.Integer(), nullable=False, server_default=sa.text("1")
        ),
        sa.Column("unit", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_itinerary_events_tenant_id", "itinerary_events", ["tenant_id"]
    )
    op.create_index(
        "ix_itinerary_events_itinerary_id", "itinerary_events", ["itinerary_id"]
    )
    op.create_index("ix_itinerary_events_day_id", "itinerary_events", ["day_id"])

    # --- rfqs ---
    op.create_table(
        "rfqs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column(
            "itinerary_id",
            sa.String(),
            sa.ForeignKey("itineraries.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("agency_id", sa.String(), nullable=False),
        sa.Column("requested_by_contact_id", sa.String(), nullable=True),
        sa.Column(
            "status", sa.String(), nullable=False, server_default=sa.text("'open'")
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "unassigned_event_ids",
            JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_rfqs_tenant_id", "rfqs", ["tenant_id"])
    op.create_index("ix_rfqs_agency_id", "rfqs", ["agency_id"])
    op.create_index("ix_rfqs_agency_status", "rfqs", ["agency_id", "status"])

    # --- rfq_segments ---
    op.create_table(
        "rfq_segments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "rfq_id",
            sa.String(),
            sa.ForeignKey("rfqs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("supplier_type", sa.String(), nullable=False),
        sa.Column("supplier_id", sa.String(), nullable=False),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column(
            "status", sa.String(), nullable=False, server_default=sa.text("'pending'")
        ),
        sa.Column("supplier_notes", sa.Text(), nullable=True),
        sa.Column("proposed_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("proposed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("proposed_by_user_id", sa.String(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by_user_id", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "rfq_id", "supplier_type", "supplier_id", name="uq_rfq_segment_supplier"
        ),
    )
    op.create_index("ix_rfq_segments_rfq_id", "rfq_segments", ["rfq_id"])
    op.create_index("ix_rfq_segments_supplier_id", "rfq_segments", ["supplier_id"])

    # --- quotes ---
    op.create_table(
        "quotes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "rfq_id",
            sa.String(),
            sa.ForeignKey("rfqs.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("items", JSONB, nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("taxes", JSONB, nullable=True),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("validity_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("terms", sa.Text(), nullable=True),
        sa.Column("prepared_by_user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- rfq_audit_log ---
    op.create_table(
        "rfq_audit_log",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "rfq_id",
            sa.String(),
            sa.ForeignKey("rfqs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "rfq_segment_id",
            sa.String(),
            sa.ForeignKey("rfq_segments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("old_state", sa.String(50), nullable=True),
        sa.Column("new_state", sa.String(50), nullable=True),
        sa.Column("action_metadata", JSONB, nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_rfq_audit_log_rfq_id", "rfq_audit_log", ["rfq_id"])
    op.create_index("ix_rfq_audit_log_user_id", "rfq_audit_log", ["user_id"])
    op.create_index("ix_rfq_audit_log_action", "rfq_audit_log", ["action"])
    op.create_index(
        "idx_rfq_audit_rfq_created",
        "rfq_audit_log",
        ["rfq_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_table("rfq_audit_log")
    op.drop_table("quotes")
    op.drop_table("rfq_segments")
    op.drop_table("rfqs")
    op.drop_table("itinerary_events")
    op.drop_table("itinerary_days")
    op.drop_table("itineraries")
    op.drop_table("suppliers")
