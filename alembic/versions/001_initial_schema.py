"""initial schema: users and pending_registrations

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            login_count INTEGER NOT NULL DEFAULT 0,
            last_login_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    # Token value is the primary key; records are kept after completion for audit
    op.execute("""
        CREATE TABLE pending_registrations (
            token TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            name TEXT NOT NULL,
            continue_url TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'completed', 'expired')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            expires_at TIMESTAMPTZ NOT NULL,
            verified_at TIMESTAMPTZ,
            ip_address TEXT
        )
    """)

    op.execute("CREATE INDEX idx_pending_registrations_email_status ON pending_registrations (email, status)")
    op.execute("CREATE INDEX idx_pending_registrations_status ON pending_registrations (status)")


def downgrade():
    op.execute("DROP TABLE IF EXISTS pending_registrations CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
