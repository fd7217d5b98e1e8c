"""marketplace schema

Revision ID: 7c1e2f9a4b10
Revises: 
Create Date: 2026-10-17 09:12:31.204518

"""
from datetime import datetime

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c1e2f9a4b10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    # USERS
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=180), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=40), nullable=True),
        sa.Column('location', sa.String(length=120), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('is_dealer', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('is_suspended', sa.Boolean(), nullable=False),
        sa.Column('suspension_reason', sa.Text(), nullable=True),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_by', sa.Integer(), nullable=True),
        sa.Column('verification_notes', sa.Text(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['suspended_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_is_admin'), ['is_admin'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_is_suspended'), ['is_suspended'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_created_at'), ['created_at'], unique=False)

    # CARS
    op.create_table(
        'cars',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('make', sa.String(length=80), nullable=False),
        sa.Column('model', sa.String(length=80), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('mileage', sa.Integer(), nullable=True),
        sa.Column('fuel_type', sa.String(length=20), nullable=True),
        sa.Column('transmission', sa.String(length=20), nullable=True),
        sa.Column('body_type', sa.String(length=20), nullable=True),
        sa.Column('engine_size', sa.String(length=20), nullable=True),
        sa.Column('doors', sa.Integer(), nullable=True),
        sa.Column('color', sa.String(length=60), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('is_negotiable', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('location', sa.String(length=120), nullable=False),
        sa.Column('postcode', sa.String(length=12), nullable=True),
        sa.Column('mot_expiry', sa.Date(), nullable=True),
        sa.Column('service_history', sa.String(length=20), nullable=False),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('condition_notes', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('featured_image', sa.String(length=500), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('moderation_status', sa.String(length=20), nullable=False),
        sa.Column('moderated_by', sa.Integer(), nullable=True),
        sa.Column('moderated_at', sa.DateTime(), nullable=True),
        sa.Column('moderation_notes', sa.Text(), nullable=True),
        sa.Column('is_flagged', sa.Boolean(), nullable=False),
        sa.Column('flag_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['moderated_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('cars', schema=None) as batch_op:
        for col in ('user_id', 'price', 'status', 'location', 'moderation_status', 'created_at'):
            batch_op.create_index(batch_op.f(f'ix_cars_{col}'), [col], unique=False)

    # MESSAGES
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('car_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=200), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['car_id'], ['cars.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('messages', schema=None) as batch_op:
        for col in ('car_id', 'sender_id', 'recipient_id', 'created_at'):
            batch_op.create_index(batch_op.f(f'ix_messages_{col}'), [col], unique=False)

    # SAVED CARS (one row per user/car pair)
    op.create_table(
        'saved_cars',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('car_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['car_id'], ['cars.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'car_id', name='uq_saved_cars_user_car')
    )
    with op.batch_alter_table('saved_cars', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_saved_cars_user_id'), ['user_id'], unique=False)

    # SEARCH ALERTS
    op.create_table(
        'search_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('filters', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('search_alerts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_search_alerts_user_id'), ['user_id'], unique=False)

    # ADMIN LOGS
    op.create_table(
        'admin_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('admin_logs', schema=None) as batch_op:
        for col in ('admin_id', 'action', 'created_at'):
            batch_op.create_index(batch_op.f(f'ix_admin_logs_{col}'), [col], unique=False)

    # USER REPORTS
    op.create_table(
        'user_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reporter_id', sa.Integer(), nullable=False),
        sa.Column('reported_user_id', sa.Integer(), nullable=True),
        sa.Column('reported_car_id', sa.Integer(), nullable=True),
        sa.Column('report_type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['reporter_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reported_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reported_car_id'], ['cars.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('user_reports', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_reports_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_reports_created_at'), ['created_at'], unique=False)

    # SITE SETTINGS
    now = datetime.utcnow()
    settings = op.create_table(
        'site_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('setting_key', sa.String(length=80), nullable=False),
        sa.Column('setting_value', sa.Text(), nullable=True),
        sa.Column('setting_type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('setting_key')
    )
    op.bulk_insert(settings, [
        {'setting_key': k, 'setting_value': v, 'setting_type': t, 'description': d,
         'updated_at': now}
        for k, v, t, d in (
            ('site_name', 'WightCars', 'text', 'Name of the website'),
            ('site_description', 'Isle of Wight Car Marketplace', 'text', 'Site description for SEO'),
            ('max_images_per_car', '8', 'number', 'Maximum number of images per car listing'),
            ('max_image_size_mb', '5', 'number', 'Maximum image size in MB'),
            ('auto_approve_listings', 'false', 'boolean', 'Automatically approve new car listings'),
            ('require_verification_to_sell', 'false', 'boolean', 'Require user verification before posting cars'),
            ('enable_user_registration', 'true', 'boolean', 'Allow new user registration'),
            ('maintenance_mode', 'false', 'boolean', 'Enable maintenance mode'),
            ('featured_cars_count', '6', 'number', 'Number of featured cars on homepage'),
            ('contact_email', 'admin@wightcars.com', 'text', 'Contact email for site inquiries'),
        )
    ])

    # SYSTEM STATS (daily snapshots)
    op.create_table(
        'system_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stat_date', sa.Date(), nullable=False),
        sa.Column('total_users', sa.Integer(), nullable=False),
        sa.Column('new_users_today', sa.Integer(), nullable=False),
        sa.Column('total_cars', sa.Integer(), nullable=False),
        sa.Column('new_cars_today', sa.Integer(), nullable=False),
        sa.Column('active_cars', sa.Integer(), nullable=False),
        sa.Column('total_messages', sa.Integer(), nullable=False),
        sa.Column('new_messages_today', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stat_date')
    )


def downgrade():
    op.drop_table('system_stats')
    op.drop_table('site_settings')
    op.drop_table('user_reports')
    op.drop_table('admin_logs')
    op.drop_table('search_alerts')
    op.drop_table('saved_cars')
    op.drop_table('messages')
    op.drop_table('cars')
    op.drop_table('users')
