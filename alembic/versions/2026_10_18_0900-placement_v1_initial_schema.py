"""initial placement schema

Revision ID: placement_v1
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'placement_v1'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _student_fk():
    return sa.Column(
        'student_id',
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey('students.id', ondelete='CASCADE'),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        'admins',
        *_base_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='branch-admin'),
        sa.Column('branch', sa.String(length=40), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
    )
    op.create_index(op.f('ix_admins_id'), 'admins', ['id'])
    op.create_index(op.f('ix_admins_email'), 'admins', ['email'], unique=True)

    op.create_table(
        'companies',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('info', postgresql.JSONB(), nullable=True, server_default=sa.text("'{}'::jsonb")),
    )
    op.create_index(op.f('ix_companies_id'), 'companies', ['id'])
    op.create_index(op.f('ix_companies_name'), 'companies', ['name'], unique=True)

    op.create_table(
        'settings',
        *_base_columns(),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
    )
    op.create_index(op.f('ix_settings_id'), 'settings', ['id'])
    op.create_index(op.f('ix_settings_key'), 'settings', ['key'], unique=True)

    op.create_table(
        'students',
        *_base_columns(),
        sa.Column('regd_id', sa.String(length=50), nullable=False),
        sa.Column('first_name', sa.String(length=60)),
        sa.Column('last_name', sa.String(length=60)),
        sa.Column('father_name', sa.String(length=120)),
        sa.Column('email', sa.String(length=200)),
        sa.Column('alt_email', sa.String(length=200)),
        sa.Column('phone', sa.String(length=20)),
        sa.Column('alt_phone', sa.String(length=20)),
        sa.Column('gender', sa.String(length=20)),
        sa.Column('nationality', sa.String(length=100)),
        sa.Column('dob', sa.Date()),
        sa.Column('aadhar_number', sa.String(length=12)),
        sa.Column('pan_card', sa.String(length=10)),
        sa.Column('college', sa.String(length=200)),
        sa.Column('branch', sa.String(length=40)),
        sa.Column('cgpa', sa.Float(), nullable=True),
        sa.Column('year', sa.String(length=10)),
        sa.Column('section', sa.String(length=10)),
        sa.Column('current_year', sa.String(length=20)),
        sa.Column('resume_url', sa.String(length=500)),
        sa.Column('break_in_studies', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('has_backlogs', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('profile_completed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('placed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )
    op.create_index(op.f('ix_students_id'), 'students', ['id'])
    op.create_index(op.f('ix_students_regd_id'), 'students', ['regd_id'], unique=True)
    op.create_index(op.f('ix_students_branch'), 'students', ['branch'])

    op.create_table(
        'addresses',
        *_base_columns(),
        _student_fk(),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('house', sa.String(length=200)),
        sa.Column('street', sa.String(length=200)),
        sa.Column('area', sa.String(length=200)),
        sa.Column('city', sa.String(length=120)),
        sa.Column('state', sa.String(length=120)),
        sa.Column('postal_code', sa.String(length=20)),
        sa.Column('country', sa.String(length=120)),
        sa.UniqueConstraint('student_id', 'type', name='unique_student_address_type'),
    )
    op.create_index(op.f('ix_addresses_id'), 'addresses', ['id'])
    op.create_index(op.f('ix_addresses_student_id'), 'addresses', ['student_id'])

    op.create_table(
        'education_records',
        *_base_columns(),
        _student_fk(),
        sa.Column('level', sa.String(length=20), nullable=False),
        sa.Column('course_name', sa.String(length=200)),
        sa.Column('duration_from', sa.Date()),
        sa.Column('duration_to', sa.Date()),
        sa.Column('course_type', sa.String(length=50)),
        sa.Column('institute', sa.String(length=200)),
        sa.Column('board', sa.String(length=200)),
        sa.Column('specialization', sa.String(length=200)),
        sa.Column('marks_obtained', sa.String(length=50)),
        sa.Column('total_marks', sa.String(length=50)),
        sa.Column('percentage', sa.Float()),
        sa.UniqueConstraint('student_id', 'level', name='unique_student_education_level'),
    )
    op.create_index(op.f('ix_education_records_id'), 'education_records', ['id'])
    op.create_index(op.f('ix_education_records_student_id'), 'education_records', ['student_id'])

    op.create_table(
        'student_auth',
        *_base_columns(),
        sa.Column(
            'student_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('students.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
    )
    op.create_index(op.f('ix_student_auth_id'), 'student_auth', ['id'])

    op.create_table(
        'device_tokens',
        *_base_columns(),
        _student_fk(),
        sa.Column('device_token', sa.String(length=500), nullable=False),
        sa.Column('platform', sa.String(length=20), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index(op.f('ix_device_tokens_id'), 'device_tokens', ['id'])
    op.create_index('idx_device_tokens_student_token', 'device_tokens', ['student_id', 'device_token'], unique=True)
    op.create_index('idx_device_tokens_token', 'device_tokens', ['device_token'])

    op.create_table(
        'drives',
        *_base_columns(),
        sa.Column(
            'company_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('companies.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('publish_date', sa.DateTime(), nullable=True),
        sa.Column('eligibility', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('total_rounds', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('round_names', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
    )
    op.create_index(op.f('ix_drives_id'), 'drives', ['id'])
    op.create_index(op.f('ix_drives_company_id'), 'drives', ['company_id'])
    op.create_index(op.f('ix_drives_status'), 'drives', ['status'])

    op.create_table(
        'applications',
        *_base_columns(),
        _student_fk(),
        sa.Column(
            'drive_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('drives.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('status_history', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('current_round', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('round_status', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('applied_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('student_id', 'drive_id', name='unique_student_drive_application'),
    )
    op.create_index(op.f('ix_applications_id'), 'applications', ['id'])
    op.create_index(op.f('ix_applications_student_id'), 'applications', ['student_id'])
    op.create_index(op.f('ix_applications_drive_id'), 'applications', ['drive_id'])
    op.create_index(op.f('ix_applications_status'), 'applications', ['status'])

    op.create_table(
        'notifications',
        *_base_columns(),
        _student_fk(),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('payload', postgresql.JSONB(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'])
    op.create_index('idx_notifications_student', 'notifications', ['student_id'])
    op.create_index('idx_notifications_student_unread', 'notifications', ['student_id', 'read'])
    op.create_index('idx_notifications_type', 'notifications', ['type'])
    op.create_index('idx_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    for table in (
        'notifications',
        'applications',
        'drives',
        'device_tokens',
        'student_auth',
        'education_records',
        'addresses',
        'students',
        'settings',
        'companies',
        'admins',
    ):
        op.drop_table(table)
