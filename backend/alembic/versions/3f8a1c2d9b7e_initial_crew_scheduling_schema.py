"""Initial crew scheduling schema

Revision ID: 3f8a1c2d9b7e
Revises:
Create Date: 2025-12-02 09:14:27.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '3f8a1c2d9b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column():
    return sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _org_column():
    return sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id'), nullable=False)


def upgrade() -> None:
    # Organizations (tenants)
    op.create_table(
        'organizations',
        _id_column(),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('slug', sa.String(255), nullable=True, unique=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        *_timestamps(),
    )

    # User profiles
    op.create_table(
        'user_profiles',
        _id_column(),
        _org_column(),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('base_role', sa.String(50), nullable=False, server_default='worker'),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "base_role IN ('admin', 'superintendent', 'engineer', 'foreman', 'worker')",
            name='ck_user_profiles_base_role',
        ),
    )
    op.create_index('ix_user_profiles_organization_id', 'user_profiles', ['organization_id'])
    op.create_index('ix_user_profiles_email', 'user_profiles', ['email'])
    op.create_index('ix_user_profiles_base_role', 'user_profiles', ['base_role'])

    # Job sites
    op.create_table(
        'job_sites',
        _id_column(),
        _org_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'on_hold', 'completed')", name='ck_job_sites_status'),
    )
    op.create_index('ix_job_sites_organization_id', 'job_sites', ['organization_id'])
    op.create_index('ix_job_sites_status', 'job_sites', ['status'])

    # Site-scoped roles
    op.create_table(
        'job_site_assignments',
        _id_column(),
        _org_column(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=False),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False, server_default=sa.text('CURRENT_DATE')),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('assigned_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('superintendent', 'engineer', 'engineer_as_superintendent', 'foreman', 'worker')",
            name='ck_job_site_assignments_role',
        ),
    )
    op.create_index('ix_job_site_assignments_organization_id', 'job_site_assignments', ['organization_id'])
    op.create_index('ix_job_site_assignments_user_id', 'job_site_assignments', ['user_id'])
    op.create_index('ix_job_site_assignments_job_site_id', 'job_site_assignments', ['job_site_id'])
    # One active assignment per (user, job site)
    op.create_index(
        'idx_job_site_assignments_unique_active',
        'job_site_assignments',
        ['user_id', 'job_site_id'],
        unique=True,
        postgresql_where=sa.text('is_active = true'),
    )

    # Workers
    op.create_table(
        'workers',
        _id_column(),
        _org_column(),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='laborer'),
        sa.Column('skills', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('operator', 'laborer', 'carpenter', 'mason')", name='ck_workers_role'),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='ck_workers_status'),
    )
    op.create_index('ix_workers_organization_id', 'workers', ['organization_id'])
    op.create_index('ix_workers_job_site_id', 'workers', ['job_site_id'])
    op.create_index('ix_workers_user_id', 'workers', ['user_id'])
    op.create_index('ix_workers_status', 'workers', ['status'])

    # Tasks
    op.create_table(
        'tasks',
        _id_column(),
        _org_column(),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('required_operators', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('required_laborers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('required_carpenters', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('required_masons', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(50), nullable=False, server_default='planned'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('planned', 'active', 'completed')", name='ck_tasks_status'),
    )
    op.create_index('ix_tasks_organization_id', 'tasks', ['organization_id'])
    op.create_index('ix_tasks_job_site_id', 'tasks', ['job_site_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])

    # Daily worker-to-task assignments
    op.create_table(
        'assignments',
        _id_column(),
        _org_column(),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='assigned'),
        sa.Column('hours_worked', sa.Numeric(5, 2), nullable=True),
        sa.Column('assigned_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('assigned', 'completed', 'reassigned')", name='ck_assignments_status'),
    )
    op.create_index('ix_assignments_organization_id', 'assignments', ['organization_id'])
    op.create_index('ix_assignments_job_site_id', 'assignments', ['job_site_id'])
    op.create_index('ix_assignments_task_id', 'assignments', ['task_id'])
    op.create_index('ix_assignments_worker_id', 'assignments', ['worker_id'])
    op.create_index('ix_assignments_assigned_date', 'assignments', ['assigned_date'])

    # Reassignment proposals
    op.create_table(
        'assignment_requests',
        _id_column(),
        _org_column(),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id'), nullable=True),
        sa.Column('to_task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id'), nullable=False),
        sa.Column('requested_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('pending', 'approved', 'denied')", name='ck_assignment_requests_status'),
    )
    op.create_index('ix_assignment_requests_organization_id', 'assignment_requests', ['organization_id'])
    op.create_index('ix_assignment_requests_job_site_id', 'assignment_requests', ['job_site_id'])
    op.create_index('ix_assignment_requests_worker_id', 'assignment_requests', ['worker_id'])
    op.create_index('ix_assignment_requests_status', 'assignment_requests', ['status'])

    # Daily hours
    op.create_table(
        'daily_hours',
        _id_column(),
        _org_column(),
        sa.Column('job_site_id', UUID(as_uuid=True), sa.ForeignKey('job_sites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('log_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='worked'),
        sa.Column('hours_worked', sa.Numeric(5, 2), nullable=False, server_default='8.0'),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('transferred_to_task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('logged_by', UUID(as_uuid=True), sa.ForeignKey('user_profiles.id'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'worker_id', 'log_date', name='uq_daily_hours_worker_date'),
        sa.CheckConstraint("status IN ('worked', 'off', 'transferred')", name='ck_daily_hours_status'),
        sa.CheckConstraint('hours_worked >= 0 AND hours_worked <= 24', name='ck_daily_hours_range'),
    )
    op.create_index('ix_daily_hours_organization_id', 'daily_hours', ['organization_id'])
    op.create_index('ix_daily_hours_job_site_id', 'daily_hours', ['job_site_id'])
    op.create_index('ix_daily_hours_worker_id', 'daily_hours', ['worker_id'])
    op.create_index('ix_daily_hours_log_date', 'daily_hours', ['log_date'])


def downgrade() -> None:
    # Drop tables in reverse order to respect foreign key constraints
    op.drop_table('daily_hours')
    op.drop_table('assignment_requests')
    op.drop_table('assignments')
    op.drop_table('tasks')
    op.drop_table('workers')
    op.drop_table('job_site_assignments')
    op.drop_table('job_sites')
    op.drop_table('user_profiles')
    op.drop_table('organizations')
