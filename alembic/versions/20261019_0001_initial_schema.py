"""Initial schema - tenants, users, students, audit trail

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tenants table
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), sa.ForeignKey('tenants.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, default='STUDENT'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Students table
    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), sa.ForeignKey('tenants.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), unique=True, nullable=False),
        sa.Column('birth_name', sa.String(255), nullable=False, index=True),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('birth_city', sa.String(255), nullable=False),
        sa.Column('birth_zip_code', sa.String(10), nullable=True),
        sa.Column('birth_country', sa.String(100), nullable=False, default='FRANCE'),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('city', sa.String(255), nullable=False),
        sa.Column('zip_code', sa.String(10), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('neph', sa.String(20), unique=True, nullable=True),
        sa.Column('e_photo_code', sa.String(50), nullable=True),
        sa.Column('has_id_card', sa.Boolean(), nullable=False, default=False),
        sa.Column('has_proof_of_address', sa.Boolean(), nullable=False, default=False),
        sa.Column('has_assr2', sa.Boolean(), nullable=False, default=False),
        sa.Column('has_jdc_certificate', sa.Boolean(), nullable=False, default=False),
        sa.Column('has_census_certificate', sa.Boolean(), nullable=False, default=False),
        sa.Column('needs_medical_opinion', sa.Boolean(), nullable=False, default=False),
        sa.Column('has_medical_opinion', sa.Boolean(), nullable=False, default=False),
        sa.Column('license_type', sa.String(10), nullable=False, default='B'),
        sa.Column('status', sa.String(30), nullable=False, default='PROSPECT'),
        sa.Column('minutes_purchased', sa.Integer(), nullable=False, default=0),
        sa.Column('minutes_used', sa.Integer(), nullable=False, default=0),
        sa.Column('guardian_name', sa.String(255), nullable=True),
        sa.Column('guardian_phone', sa.String(30), nullable=True),
        sa.Column('guardian_email', sa.String(255), nullable=True),
        sa.Column('guardian_relation', sa.String(100), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('minutes_used >= 0', name='ck_students_minutes_used_positive'),
        sa.CheckConstraint('minutes_used <= minutes_purchased', name='ck_students_minutes_within_purchase'),
    )

    # Audit trail (append-only, no foreign keys)
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', sa.String(100), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_tenant_created', 'audit_logs', ['tenant_id', 'created_at'])
    op.create_index('ix_audit_logs_tenant_entity', 'audit_logs', ['tenant_id', 'entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_tenant_actor', 'audit_logs', ['tenant_id', 'actor_id'])


def downgrade() -> None:
    op.drop_index('ix_audit_logs_tenant_actor', table_name='audit_logs')
    op.drop_index('ix_audit_logs_tenant_entity', table_name='audit_logs')
    op.drop_index('ix_audit_logs_tenant_created', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('students')
    op.drop_table('users')
    op.drop_table('tenants')
