"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='admin'),
        sa.Column('reset_code', sa.String(length=6), nullable=True),
        sa.Column('reset_code_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('username', name='users_username_key'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=False)

    op.create_table('bookings',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('service', sa.String(length=32), nullable=False),
        sa.Column('transfer_type', sa.String(length=32), nullable=True),
        sa.Column('flight_number', sa.String(length=32), nullable=True),
        sa.Column('flight_date', sa.Date(), nullable=True),
        sa.Column('flight_time', sa.String(length=16), nullable=True),
        sa.Column('pickup_time', sa.String(length=16), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=True),
        sa.Column('event_time', sa.String(length=16), nullable=True),
        sa.Column('service_hours', sa.Integer(), nullable=True),
        sa.Column('pickup_location', sa.JSON(), nullable=False),
        sa.Column('dropoff_location', sa.JSON(), nullable=True),
        sa.Column('passengers', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('additional_details', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_bookings_status_created_at', 'bookings', ['status', 'created_at'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor', sa.String(length=150), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('object_type', sa.String(length=128), nullable=True),
        sa.Column('object_id', sa.String(length=128), nullable=True),
        sa.Column('detail', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_actor', 'audit_logs', ['actor'], unique=False)


def downgrade():
    op.drop_index('ix_audit_logs_actor', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_bookings_status_created_at', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
