"""Create users table

Revision ID: 3f9c1e7a2b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1e7a2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, comment="Member's full name"),
        sa.Column('email', sa.String(length=255), nullable=False, comment="Member's email address"),
        sa.Column('phone', sa.String(length=10), nullable=True, comment='10 digit contact number'),
        sa.Column('membership_type', sa.String(length=20), nullable=False, comment='Membership tier (STUDENT, REGULAR, PREMIUM)'),
        sa.Column('membership_status', sa.String(length=20), nullable=False, comment='Membership state (ACTIVE, SUSPENDED, EXPIRED)'),
        sa.Column('joined_date', sa.DateTime(timezone=True), nullable=False, comment='When the member registered'),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=False, comment='When the membership expires'),
        sa.Column('borrowed_books_count', sa.Integer(), nullable=False, comment='Books currently borrowed'),
        sa.Column('max_books_allowed', sa.Integer(), nullable=False, comment='Borrowing limit derived from the membership tier'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('borrowed_books_count >= 0 AND borrowed_books_count <= max_books_allowed', name='ck_users_borrowed_books_count_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
