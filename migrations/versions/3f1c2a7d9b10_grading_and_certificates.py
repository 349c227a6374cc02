from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a7d9b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=True, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='member'),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('date_created', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'courses',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'course_resources',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'course_videos',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'course_content_progress',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('item_type', sa.String(length=20), nullable=False),
        sa.Column('item_id', sa.String(length=36), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'course_enrollments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('enrolled_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('course_id', 'user_id', name='uq_course_enrollments_course_user'),
    )

    op.create_table(
        'tests',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=True),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('max_attempts', sa.Integer(), nullable=True, server_default='1'),
        sa.Column('pass_score', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'test_questions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('test_id', sa.String(length=36), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False, server_default=''),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='single_choice'),
        sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('points >= 0', name='ck_test_questions_points_non_negative'),
    )

    op.create_table(
        'test_question_options',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('question_id', sa.String(length=36), sa.ForeignKey('test_questions.id'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'test_attempts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('test_id', sa.String(length=36), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('attempt_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('started_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('passed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('answers', sa.JSON(), nullable=False),
    )

    op.create_table(
        'certificates',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='valid'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('source_attempt_id', sa.String(length=36), sa.ForeignKey('test_attempts.id'), nullable=True),
        sa.Column('storage_bucket', sa.String(length=100), nullable=True),
        sa.Column('storage_path', sa.String(length=500), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=True),
        sa.Column('size_bytes', sa.Integer(), nullable=True),
        sa.Column('generated_at', sa.DateTime(), nullable=True),
        sa.Column('template_id', sa.String(length=36), nullable=True),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_certificates_user_course'),
    )

    op.create_table(
        'course_certificate_templates',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), nullable=False, unique=True),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('storage_bucket', sa.String(length=100), nullable=False),
        sa.Column('storage_path', sa.String(length=500), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=True),
        sa.Column('uploaded_by', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'course_certificate_settings',
        sa.Column('course_id', sa.String(length=36), sa.ForeignKey('courses.id'), primary_key=True),
        sa.Column('organization_id', sa.String(length=36), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('certificate_title', sa.Text(), nullable=True),
        sa.Column('course_passing_grade_percent', sa.Integer(), nullable=True),
        sa.Column('name_placement_json', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_by', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
    )


def downgrade():
    op.drop_table('course_certificate_settings')
    op.drop_table('course_certificate_templates')
    op.drop_table('certificates')
    op.drop_table('test_attempts')
    op.drop_table('test_question_options')
    op.drop_table('test_questions')
    op.drop_table('tests')
    op.drop_table('course_enrollments')
    op.drop_table('course_content_progress')
    op.drop_table('course_videos')
    op.drop_table('course_resources')
    op.drop_table('courses')
    op.drop_table('users')
    op.drop_table('organizations')
