"""Recurring room messages

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None  # This is the first migration
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('recurring_messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_id', sa.String(length=255), nullable=False),
        sa.Column('message_content', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_by_name', sa.String(length=255), server_default='', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('recurrence_pattern', sa.String(length=20), nullable=False),
        sa.Column('recurrence_interval', sa.Integer(), server_default='1', nullable=False),
        sa.Column('days_of_week', sa.JSON(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('last_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint("recurrence_pattern IN ('daily','weekly','monthly')", name='ck_recurring_messages_pattern'),
        sa.CheckConstraint('recurrence_interval >= 1', name='ck_recurring_messages_interval'),
        sa.CheckConstraint('end_date IS NULL OR end_date >= start_date', name='ck_recurring_messages_window'),
        sa.PrimaryKeyConstraint('id')
    )

    # The dispatcher filters on these on every tick
    op.create_index('ix_recurring_messages_room_id', 'recurring_messages', ['room_id'])
    op.create_index('ix_recurring_messages_start_date', 'recurring_messages', ['start_date'])
    op.create_index('ix_recurring_messages_end_date', 'recurring_messages', ['end_date'])
    op.create_index('ix_recurring_messages_is_active', 'recurring_messages', ['is_active'])

    op.create_table('chat_messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_id', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=False),
        sa.Column('sender_name', sa.String(length=255), server_default='', nullable=False),
        sa.Column('message_type', sa.String(length=20), server_default='text', nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_messages_room_id', 'chat_messages', ['room_id'])
    op.create_index('ix_chat_messages_created_at', 'chat_messages', ['created_at'])


def downgrade():
    op.drop_index('ix_chat_messages_created_at', table_name='chat_messages')
    op.drop_index('ix_chat_messages_room_id', table_name='chat_messages')
    op.drop_table('chat_messages')

    op.drop_index('ix_recurring_messages_is_active', table_name='recurring_messages')
    op.drop_index('ix_recurring_messages_end_date', table_name='recurring_messages')
    op.drop_index('ix_recurring_messages_start_date', table_name='recurring_messages')
    op.drop_index('ix_recurring_messages_room_id', table_name='recurring_messages')
    op.drop_table('recurring_messages')
