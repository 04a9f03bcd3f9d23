"""create feature flag tables

Revision ID: 0001_feature_flags
Revises:
Create Date: 2026-01-01 00:00:00.000000+00:00

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001_feature_flags'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('CURRENT_TIMESTAMP'),
            nullable=False,
            comment='Timestamp of record creation',
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('CURRENT_TIMESTAMP'),
            nullable=False,
            comment='Timestamp of last update',
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        'feature_flags',
        sa.Column('key', sa.String(length=100), nullable=False, comment='Unique flag key'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, comment='Global enabled state'),
        sa.Column(
            'description', sa.String(length=500), nullable=True, comment='Flag description'
        ),
        sa.Column('id', sa.Uuid(), nullable=False, comment='UUID v4 primary key'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_feature_flags')),
    )
    op.create_index(op.f('ix_feature_flags_key'), 'feature_flags', ['key'], unique=True)

    op.create_table(
        'feature_overrides',
        sa.Column('feature_flag_id', sa.Uuid(), nullable=False, comment='Owning feature flag'),
        sa.Column(
            'override_type',
            sa.String(length=20),
            nullable=False,
            comment='Targeting dimension (User, Group, Region)',
        ),
        sa.Column(
            'target_id',
            sa.String(length=100),
            nullable=False,
            comment='Targeted user, group or region',
        ),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, comment='Override value'),
        sa.Column('id', sa.Uuid(), nullable=False, comment='UUID v4 primary key'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['feature_flag_id'],
            ['feature_flags.id'],
            name=op.f('fk_feature_overrides_feature_flag_id_feature_flags'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_feature_overrides')),
        sa.UniqueConstraint(
            'feature_flag_id',
            'override_type',
            'target_id',
            name='uq_feature_overrides_flag_type_target',
        ),
    )
    op.create_index(
        op.f('ix_feature_overrides_feature_flag_id'),
        'feature_overrides',
        ['feature_flag_id'],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(op.f('ix_feature_overrides_feature_flag_id'), table_name='feature_overrides')
    op.drop_table('feature_overrides')
    op.drop_index(op.f('ix_feature_flags_key'), table_name='feature_flags')
    op.drop_table('feature_flags')
