"""create app_user table

Revision ID: 001
Revises:
Create Date: 2024-01-10 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'app_user',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('strava_athlete_id', sa.BigInteger(), nullable=False),
        sa.Column('strava_access_token', sa.Text(), nullable=False),
        sa.Column('strava_refresh_token', sa.Text(), nullable=False),
        sa.Column('strava_token_expires_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_app_user_email', 'app_user', ['email'], unique=True)
    op.create_index('ix_app_user_strava_athlete_id', 'app_user', ['strava_athlete_id'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_app_user_strava_athlete_id', table_name='app_user')
    op.drop_index('ix_app_user_email', table_name='app_user')
    op.drop_table('app_user')
