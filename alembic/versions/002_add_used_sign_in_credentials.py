"""used sign-in credentials: one row per redeemed credential id

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE TABLE used_sign_in_credentials (
            jti TEXT PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            used_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            expires_at TIMESTAMPTZ NOT NULL
        )
    """)

    # Purged by the cleanup task once the credential itself has expired
    op.execute("CREATE INDEX idx_used_sign_in_credentials_expires_at ON used_sign_in_credentials (expires_at)")


def downgrade():
    op.execute("DROP TABLE IF EXISTS used_sign_in_credentials CASCADE")
