"""Create document request tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


REQUEST_STATUSES = "('Draft', 'Sent', 'Files_Received', 'Under_Review', 'Approved', 'Rejected', 'Expired')"
REVIEW_STATUSES = "('Pending_Review', 'Approved', 'Rejected')"
UPLOAD_SOURCES = "('Portal_Upload', 'Internal', 'Migration')"


def upgrade():
    # Entity type configuration (administered at runtime)
    op.create_table(
        'entity_type_config',
        sa.Column('type_id', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('recipient_email_path', sa.Text(), nullable=True),
        sa.Column('recipient_name_path', sa.Text(), nullable=True),
        sa.Column('recipient_ref_path', sa.Text(), nullable=True),
        sa.Column('default_expiration_days', sa.Integer(), server_default='7', nullable=False),
        sa.Column('max_file_size_bytes', sa.BigInteger(), server_default='5242880', nullable=False),
        sa.Column('max_files_per_upload', sa.Integer(), server_default='10', nullable=False),
        sa.Column('allowed_extensions', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('quick_action_label', sa.Text(), nullable=True),
        sa.Column('notification_template_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(NOW() AT TIME ZONE 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text("(NOW() AT TIME ZONE 'utc')"), nullable=False),
        sa.PrimaryKeyConstraint('type_id'),
        sa.CheckConstraint('default_expiration_days > 0', name='ck_entity_type_config_expiration'),
        sa.CheckConstraint('max_file_size_bytes > 0', name='ck_entity_type_config_max_size'),
        sa.CheckConstraint('max_files_per_upload > 0', name='ck_entity_type_config_max_files'),
    )

    # Display number allocator
    op.create_table(
        'document_request_number',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('allocated_at', sa.DateTime(), server_default=sa.text("(NOW() AT TIME ZONE 'utc')"), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'document_request',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('display_number', sa.Text(), nullable=False),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('token_expires_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('originating_type', sa.Text(), nullable=False),
        sa.Column('originating_id', sa.Text(), nullable=False),
        sa.Column('recipient_email', sa.Text(), nullable=False),
        sa.Column('recipient_name', sa.Text(), nullable=False),
        sa.Column('recipient_ref', sa.Text(), nullable=True),
        sa.Column('requested_by', sa.Text(), nullable=False),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('files_received_at', sa.DateTime(), nullable=True),
        sa.Column('review_completed_at', sa.DateTime(), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('file_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('config_type_id', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('display_number', name='uq_document_request_display_number'),
        sa.CheckConstraint(f"status IN {REQUEST_STATUSES}", name='ck_document_request_status'),
        sa.CheckConstraint('file_count >= 0', name='ck_document_request_file_count'),
        sa.CheckConstraint('token = lower(token)', name='ck_document_request_token_lower'),
    )

    # Token lookups and uniqueness; sweep scan; originating-entity lookups
    op.create_index('ux_document_request_token', 'document_request', ['token'], unique=True)
    op.create_index('ix_document_request_status_expires', 'document_request', ['status', 'token_expires_at'])
    op.create_index('ix_document_request_originating', 'document_request', ['originating_type', 'originating_id'])

    op.create_table(
        'file_artifact',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('request_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('content_type', sa.Text(), nullable=True),
        sa.Column('sha256', sa.Text(), nullable=False),
        sa.Column('storage_key', sa.Text(), nullable=False),
        sa.Column('upload_source', sa.Text(), nullable=False),
        sa.Column('review_status', sa.Text(), nullable=False),
        sa.Column('reviewed_by', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['request_id'], ['document_request.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(f"review_status IN {REVIEW_STATUSES}", name='ck_file_artifact_review_status'),
        sa.CheckConstraint(f"upload_source IN {UPLOAD_SOURCES}", name='ck_file_artifact_upload_source'),
        sa.CheckConstraint('size_bytes > 0', name='ck_file_artifact_size'),
    )
    op.create_index('ix_file_artifact_request', 'file_artifact', ['request_id', 'deleted_at'])

    op.create_table(
        'artifact_link',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('artifact_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=False),
        sa.Column('entity_id', sa.Text(), nullable=False),
        sa.Column('linked_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['artifact_id'], ['file_artifact.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('artifact_id', 'entity_type', 'entity_id', name='uq_artifact_link_target'),
    )

    op.create_table(
        'review_assignment',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('request_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='OPEN', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('OPEN', 'COMPLETED')", name='ck_review_assignment_status'),
    )
    op.create_index('ix_review_assignment_request_status', 'review_assignment', ['request_id', 'status'])

    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('actor', sa.Text(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=True),
        sa.Column('entity_id', sa.Text(), nullable=True),
        sa.Column('metadata_json', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])


def downgrade():
    op.drop_index('ix_audit_log_created_at', table_name='audit_log')
    op.drop_index('ix_audit_log_entity', table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index('ix_review_assignment_request_status', table_name='review_assignment')
    op.drop_table('review_assignment')

    op.drop_table('artifact_link')

    op.drop_index('ix_file_artifact_request', table_name='file_artifact')
    op.drop_table('file_artifact')

    op.drop_index('ix_document_request_originating', table_name='document_request')
    op.drop_index('ix_document_request_status_expires', table_name='document_request')
    op.drop_index('ux_document_request_token', table_name='document_request')
    op.drop_table('document_request')

    op.drop_table('document_request_number')
    op.drop_table('entity_type_config')
