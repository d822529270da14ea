"""Create membership seat allocation tables

Revision ID: m001_membership_seat_engine
Revises:
Create Date: 2026-10-17

This migration creates the tables for seat allocation and fee resolution:
- designations / designation_prices: role catalog and fee overrides
- cells and hrc_* geography
- capacity_overrides, cell_level_capacities: capacity configuration
- seat_buckets, card_number_counters: rows locked while numbering seats and cards
- memberships, membership_payments, id_cards, membership_audit_logs
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'm001_membership_seat_engine'
down_revision = None
branch_labels = None
depends_on = None

org_level = postgresql.ENUM(
    'NATIONAL', 'ZONE', 'STATE', 'DISTRICT', 'MANDAL', name='org_level', create_type=False
)
hrc_zone = postgresql.ENUM(
    'NORTH', 'SOUTH', 'EAST', 'WEST', 'CENTRAL', name='hrc_zone', create_type=False
)
membership_status = postgresql.ENUM(
    'PENDING_PAYMENT', 'PENDING_APPROVAL', 'ACTIVE', 'EXPIRED', 'REVOKED',
    name='membership_status', create_type=False
)
payment_status = postgresql.ENUM(
    'PENDING', 'NOT_REQUIRED', 'SUCCESS', 'FAILED', 'REFUNDED',
    name='membership_payment_status', create_type=False
)
payment_purpose = postgresql.ENUM(
    'JOIN', 'REASSIGNMENT', name='membership_payment_purpose', create_type=False
)
card_status = postgresql.ENUM(
    'GENERATED', 'REVOKED', 'EXPIRED', name='id_card_status', create_type=False
)

ENUMS = (org_level, hrc_zone, membership_status, payment_status, payment_purpose, card_status)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]


def _scope_columns():
    return [
        sa.Column('level', org_level, nullable=False),
        sa.Column('zone', hrc_zone, nullable=True),
        sa.Column('country_id', sa.String(), sa.ForeignKey('hrc_countries.id'), nullable=True),
        sa.Column('state_id', sa.String(), sa.ForeignKey('hrc_states.id'), nullable=True),
        sa.Column('district_id', sa.String(), sa.ForeignKey('hrc_districts.id'), nullable=True),
        sa.Column('mandal_id', sa.String(), sa.ForeignKey('hrc_mandals.id'), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # Geography
    op.create_table(
        'hrc_countries',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('code', sa.String(8), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_table(
        'hrc_states',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(8), nullable=True),
        sa.Column('zone', hrc_zone, nullable=False),
        sa.Column('country_id', sa.String(), sa.ForeignKey('hrc_countries.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.UniqueConstraint('country_id', 'name', name='uq_state_country_name'),
    )
    op.create_index('ix_hrc_states_country_id', 'hrc_states', ['country_id'])
    op.create_table(
        'hrc_districts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('state_id', sa.String(), sa.ForeignKey('hrc_states.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.UniqueConstraint('state_id', 'name', name='uq_district_state_name'),
    )
    op.create_index('ix_hrc_districts_state_id', 'hrc_districts', ['state_id'])
    op.create_table(
        'hrc_mandals',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('district_id', sa.String(), sa.ForeignKey('hrc_districts.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.UniqueConstraint('district_id', 'name', name='uq_mandal_district_name'),
    )
    op.create_index('ix_hrc_mandals_district_id', 'hrc_mandals', ['district_id'])

    # Catalog
    op.create_table(
        'cells',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('code', sa.String(64), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
    )
    op.create_table(
        'designations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('code', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('parent_id', sa.String(), sa.ForeignKey('designations.id'), nullable=True),
        sa.Column('default_capacity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('default_fee', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('default_validity_days', sa.Integer(), nullable=False, server_default='365'),
        sa.Column('order_rank', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_designations_code', 'designations', ['code'], unique=True)
    op.create_index('ix_designations_parent_id', 'designations', ['parent_id'])

    op.create_table(
        'designation_prices',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('designation_id', sa.String(), sa.ForeignKey('designations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cell_id', sa.String(), sa.ForeignKey('cells.id'), nullable=True),
        sa.Column('level', org_level, nullable=True),
        sa.Column('zone', hrc_zone, nullable=True),
        sa.Column('state_id', sa.String(), sa.ForeignKey('hrc_states.id'), nullable=True),
        sa.Column('district_id', sa.String(), sa.ForeignKey('hrc_districts.id'), nullable=True),
        sa.Column('mandal_id', sa.String(), sa.ForeignKey('hrc_mandals.id'), nullable=True),
        sa.Column('fee', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('validity_days', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index('ix_designation_prices_designation_id', 'designation_prices', ['designation_id'])

    # Capacity
    op.create_table(
        'capacity_overrides',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('bucket_key', sa.String(512), nullable=False, unique=True),
        sa.Column('cell_id', sa.String(), sa.ForeignKey('cells.id'), nullable=False),
        sa.Column('designation_id', sa.String(), sa.ForeignKey('designations.id', ondelete='CASCADE'), nullable=False),
        *_scope_columns(),
        sa.Column('capacity', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_capacity_overrides_designation_id', 'capacity_overrides', ['designation_id'])
    op.create_table(
        'cell_level_capacities',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('aggregate_key', sa.String(512), nullable=False, unique=True),
        sa.Column('cell_id', sa.String(), sa.ForeignKey('cells.id'), nullable=False),
        *_scope_columns(),
        sa.Column('capacity', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_cell_level_capacities_cell_id', 'cell_level_capacities', ['cell_id'])
    op.create_table(
        'seat_buckets',
        sa.Column('bucket_key', sa.String(512), primary_key=True),
        sa.Column('last_allocated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_table(
        'card_number_counters',
        sa.Column('epoch', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('last_sequence', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )

    # Memberships
    op.create_table(
        'memberships',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),  # No FK - users live in the auth service
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('cell_id', sa.String(), sa.ForeignKey('cells.id'), nullable=False),
        sa.Column('designation_id', sa.String(), sa.ForeignKey('designations.id'), nullable=False),
        *_scope_columns(),
        sa.Column('bucket_key', sa.String(512), nullable=False),
        sa.Column('seat_sequence', sa.Integer(), nullable=False),
        sa.Column('status', membership_status, nullable=False),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('fee_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('validity_days', sa.Integer(), nullable=False),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.UniqueConstraint('bucket_key', 'seat_sequence', name='uq_membership_bucket_seat'),
    )
    op.create_index('ix_memberships_user_id', 'memberships', ['user_id'])
    op.create_index('ix_memberships_cell_id', 'memberships', ['cell_id'])
    op.create_index('ix_memberships_designation_id', 'memberships', ['designation_id'])
    op.create_index('ix_memberships_bucket_status', 'memberships', ['bucket_key', 'status'])
    op.create_index('ix_memberships_status_expires_at', 'memberships', ['status', 'expires_at'])

    op.create_table(
        'membership_payments',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('membership_id', sa.String(), sa.ForeignKey('memberships.id'), nullable=False),
        sa.Column('purpose', payment_purpose, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('provider_ref', sa.String(255), nullable=True, unique=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_membership_payments_membership_id', 'membership_payments', ['membership_id'])

    op.create_table(
        'id_cards',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('membership_id', sa.String(), sa.ForeignKey('memberships.id'), nullable=False, unique=True),
        sa.Column('card_number', sa.String(32), nullable=False, unique=True),
        sa.Column('epoch', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('status', card_status, nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('designation_name', sa.String(255), nullable=True),
        sa.Column('cell_name', sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('epoch', 'sequence', name='uq_id_card_epoch_sequence'),
    )

    op.create_table(
        'membership_audit_logs',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('actor_type', sa.String(50), nullable=False),
        sa.Column('actor_id', sa.String(), nullable=True),
        sa.Column('membership_id', sa.String(), nullable=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('previous_state', sa.JSON(), nullable=True),
        sa.Column('new_state', sa.JSON(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index('ix_membership_audit_logs_action', 'membership_audit_logs', ['action'])
    op.create_index('ix_membership_audit_logs_membership_id', 'membership_audit_logs', ['membership_id'])


def downgrade() -> None:
    op.drop_table('membership_audit_logs')
    op.drop_table('id_cards')
    op.drop_table('membership_payments')
    op.drop_table('memberships')
    op.drop_table('card_number_counters')
    op.drop_table('seat_buckets')
    op.drop_table('cell_level_capacities')
    op.drop_table('capacity_overrides')
    op.drop_table('designation_prices')
    op.drop_table('designations')
    op.drop_table('cells')
    op.drop_table('hrc_mandals')
    op.drop_table('hrc_districts')
    op.drop_table('hrc_states')
    op.drop_table('hrc_countries')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
