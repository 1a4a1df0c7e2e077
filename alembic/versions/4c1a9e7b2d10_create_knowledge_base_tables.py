"""create knowledge base tables

Revision ID: 4c1a9e7b2d10
Revises:
Create Date: 2026-10-18 10:12:41.207113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1a9e7b2d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'file_record',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('filename', sa.String(length=512), nullable=False),
        sa.Column('original_name', sa.String(length=512), nullable=False),
        sa.Column('content_type', sa.String(length=255), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.Enum('processing', 'completed', 'error', name='filestatus',
                                    native_enum=False, length=20), nullable=False),
        sa.Column('session_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_file_record_filename', 'file_record', ['filename'], unique=False)
    op.create_index('ix_file_record_status', 'file_record', ['status'], unique=False)
    op.create_index('ix_file_record_session_id', 'file_record', ['session_id'], unique=False)
    op.create_index('ix_file_record_owner_id', 'file_record', ['owner_id'], unique=False)
    op.create_index('ix_file_record_created_at', 'file_record', ['created_at'], unique=False)

    op.create_table(
        'chat_message',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_bot', sa.Boolean(), nullable=False),
        sa.Column('session_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('file_id', sa.Integer(), nullable=True),
        sa.Column('correlation_id', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_message_is_bot', 'chat_message', ['is_bot'], unique=False)
    op.create_index('ix_chat_message_session_id', 'chat_message', ['session_id'], unique=False)
    op.create_index('ix_chat_message_owner_id', 'chat_message', ['owner_id'], unique=False)
    op.create_index('ix_chat_message_created_at', 'chat_message', ['created_at'], unique=False)
    op.create_index('ix_chat_message_file_id', 'chat_message', ['file_id'], unique=False)
    op.create_index('ix_chat_message_correlation_id', 'chat_message', ['correlation_id'], unique=False)

    op.create_table(
        'ingested_documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('file_id', sa.Integer(), nullable=False),
        sa.Column('filename', sa.String(length=512), nullable=False),
        sa.Column('vector_key', sa.String(length=600), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('chunk_count', sa.Integer(), nullable=False),
        sa.Column('memory_ids', sa.JSON(), nullable=False),
        sa.Column('document_hash', sa.String(length=64), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('content_type', sa.String(length=255), nullable=True),
        sa.Column('size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('document_metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ingested_documents_file_id', 'ingested_documents', ['file_id'], unique=True)
    op.create_index('ix_ingested_documents_filename', 'ingested_documents', ['filename'], unique=False)
    op.create_index('ix_ingested_documents_vector_key', 'ingested_documents', ['vector_key'], unique=False)
    op.create_index('ix_ingested_documents_document_hash', 'ingested_documents', ['document_hash'], unique=False)
    op.create_index('ix_ingested_documents_user_id', 'ingested_documents', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_table('ingested_documents')
    op.drop_table('chat_message')
    op.drop_table('file_record')
