"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # Create learning_paths table
    op.create_table('learning_paths',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_learning_paths_user', 'learning_paths', ['user_id', 'created_at'], unique=False)

    # Create levels table
    op.create_table('levels',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('learning_path_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['learning_path_id'], ['learning_paths.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_levels_path_order', 'levels', ['learning_path_id', 'order_index'], unique=False)

    # Create modules table
    op.create_table('modules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('level_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('youtube_url', sa.Text(), nullable=True),
        sa.Column('github_url', sa.Text(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_modules_level_order', 'modules', ['level_id', 'order_index'], unique=False)
    op.create_index('idx_modules_completed', 'modules', ['is_completed', 'updated_at'], unique=False)

    # Create projects table
    op.create_table('projects',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('level_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('github_url', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_projects_level_order', 'projects', ['level_id', 'order_index'], unique=False)

    # Create user_metrics table
    op.create_table('user_metrics',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('total_paths', sa.Integer(), server_default='0', nullable=False),
        sa.Column('completed_paths', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_modules', sa.Integer(), server_default='0', nullable=False),
        sa.Column('completed_modules', sa.Integer(), server_default='0', nullable=False),
        sa.Column('average_completion_rate', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            'average_completion_rate >= 0 AND average_completion_rate <= 100',
            name='check_completion_rate_range',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id')
    )


def downgrade() -> None:
    op.drop_table('user_metrics')
    op.drop_index('idx_projects_level_order', table_name='projects')
    op.drop_table('projects')
    op.drop_index('idx_modules_completed', table_name='modules')
    op.drop_index('idx_modules_level_order', table_name='modules')
    op.drop_table('modules')
    op.drop_index('idx_levels_path_order', table_name='levels')
    op.drop_table('levels')
    op.drop_index('idx_learning_paths_user', table_name='learning_paths')
    op.drop_table('learning_paths')
    op.drop_table('users')
