"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:12:40.511203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    op.create_table(
        'member_profile',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_member_profile_user_id'), 'member_profile', ['user_id'], unique=True)

    op.create_table(
        'user_role',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.Enum('admin', 'user', name='approle', native_enum=False), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_role_user_id_role'),
    )
    op.create_index(op.f('ix_user_role_user_id'), 'user_role', ['user_id'], unique=False)

    op.create_table(
        'contribution',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'completed', 'failed', name='contributionstatus', native_enum=False), nullable=False),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_contribution_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_contribution_user_id'), 'contribution', ['user_id'], unique=False)

    op.create_table(
        'loan',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('purpose', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'approved', 'denied', 'defaulted', 'paid', name='loanstatus', native_enum=False), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('interest_rate', sa.Numeric(precision=5, scale=4), nullable=True),
        sa.Column('total_with_interest', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('last_payment_date', sa.DateTime(), nullable=True),
        sa.Column('installments_count', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_loan_amount_positive'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_loan_amount_paid_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_loan_user_id'), 'loan', ['user_id'], unique=False)
    op.create_index(op.f('ix_loan_status'), 'loan', ['status'], unique=False)

    op.create_table(
        'loan_installment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('loan_id', sa.Uuid(), nullable=False),
        sa.Column('installment_number', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'paid', 'overdue', name='installmentstatus', native_enum=False), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['loan_id'], ['loan.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_loan_installment_loan_id'), 'loan_installment', ['loan_id'], unique=False)

    op.create_table(
        'loan_payment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('loan_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('recorded_by', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['loan_id'], ['loan.id']),
        sa.ForeignKeyConstraint(['recorded_by'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_loan_payment_loan_id'), 'loan_payment', ['loan_id'], unique=False)

    op.create_table(
        'fine',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'paid', 'cancelled', name='finestatus', native_enum=False), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('issued_by', sa.Uuid(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_fine_amount_positive'),
        sa.CheckConstraint('amount_paid >= 0 AND amount_paid <= amount', name='ck_fine_amount_paid_bounds'),
        sa.ForeignKeyConstraint(['issued_by'], ['user.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_fine_user_id'), 'fine', ['user_id'], unique=False)

    op.create_table(
        'fine_payment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('fine_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=False),
        sa.Column('recorded_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['fine_id'], ['fine.id']),
        sa.ForeignKeyConstraint(['recorded_by'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_fine_payment_fine_id'), 'fine_payment', ['fine_id'], unique=False)


def downgrade() -> None:
    for table in (
        'fine_payment', 'fine', 'loan_payment', 'loan_installment',
        'loan', 'contribution', 'user_role', 'member_profile',
    ):
        op.drop_table(table)
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
