"""create analytics tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2025-11-03 10:12:41.118204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def _daily_columns(*metrics):
    return [
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('day', sa.TIMESTAMP(timezone=True), nullable=False),
    ] + [sa.Column(metric, sa.BIGINT()) for metric in metrics]


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.Text()),
        sa.Column('server_url', sa.Text()),
        sa.Column('timezone', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_accounts_active_timezone', 'accounts', ['is_active', 'timezone'])

    op.create_table(
        'account_stats',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('fetched_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('followers_count', sa.BIGINT()),
        sa.Column('following_count', sa.BIGINT()),
        sa.Column('statuses_count', sa.BIGINT()),
    )
    op.create_index('idx_account_stats_account_fetched', 'account_stats', ['account_id', 'fetched_at'])

    op.create_table(
        'toots',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('uri', sa.Text(), nullable=False),
        sa.Column('url', sa.Text()),
        sa.Column('content', sa.Text()),
        sa.Column('language', sa.String()),
        sa.Column('tags', postgresql.JSONB()),
        sa.Column('replies_count', sa.BIGINT()),
        sa.Column('reblogs_count', sa.BIGINT()),
        sa.Column('favourites_count', sa.BIGINT()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('fetched_at', sa.TIMESTAMP(timezone=True)),
    )
    op.create_index('idx_toots_account_created', 'toots', ['account_id', 'created_at'])

    op.create_table(
        'toot_stats',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('uri', sa.Text(), nullable=False),
        sa.Column('fetched_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('replies_count', sa.BIGINT()),
        sa.Column('reblogs_count', sa.BIGINT()),
        sa.Column('favourites_count', sa.BIGINT()),
    )
    op.create_index('idx_toot_stats_account_fetched', 'toot_stats', ['account_id', 'fetched_at'])

    # Non-unique: insert-mode aggregation can write duplicate days
    op.create_table('daily_account_stats', *_daily_columns('followers_count', 'following_count', 'statuses_count'))
    op.create_index('idx_daily_account_stats_account_day', 'daily_account_stats', ['account_id', 'day'])

    op.create_table('daily_toot_stats', *_daily_columns('replies_count', 'boosts_count', 'favourites_count'))
    op.create_index('idx_daily_toot_stats_account_day', 'daily_toot_stats', ['account_id', 'day'])

    op.create_table(
        'hashtag_stats',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('day', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('hashtag', sa.String(), nullable=False),
        sa.Column('toot_count', sa.BIGINT()),
        sa.Column('replies_count', sa.BIGINT()),
        sa.Column('reblogs_count', sa.BIGINT()),
        sa.Column('favourites_count', sa.BIGINT()),
    )
    op.create_index('idx_hashtag_stats_account_day_tag', 'hashtag_stats',
                    ['account_id', 'day', 'hashtag'], unique=True)

    op.create_table(
        'cli_job_runs',
        sa.Column('id', sa.BIGINT(), primary_key=True, autoincrement=True),
        sa.Column('job_name', sa.String(), nullable=False),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('duration_ms', sa.BIGINT()),
        sa.Column('records_processed', sa.BIGINT()),
        sa.Column('error_message', sa.Text()),
    )
    op.create_index('idx_cli_job_runs_job_name', 'cli_job_runs', ['job_name'])
    op.create_index('idx_cli_job_runs_status', 'cli_job_runs', ['status'])


def downgrade() -> None:
    for table in ('cli_job_runs', 'hashtag_stats', 'daily_toot_stats', 'daily_account_stats',
                  'toot_stats', 'toots', 'account_stats', 'accounts'):
        op.drop_table(table)
