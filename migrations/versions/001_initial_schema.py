"""Initial schema: users, boards, columns and cells

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            session_token TEXT UNIQUE,
            created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS boards (
            id SERIAL PRIMARY KEY,
            owner_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            column_order JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS board_columns (
            id SERIAL PRIMARY KEY,
            owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            color TEXT,
            cell_order JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS cells (
            id SERIAL PRIMARY KEY,
            owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            company TEXT NOT NULL,
            position TEXT NOT NULL,
            location TEXT NOT NULL,
            contact_name TEXT,
            contact_title TEXT,
            contact_email TEXT,
            note TEXT,
            color TEXT,
            created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_board_columns_owner_id ON board_columns (owner_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_cells_owner_id ON cells (owner_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cells")
    op.execute("DROP TABLE IF EXISTS board_columns")
    op.execute("DROP TABLE IF EXISTS boards")
    op.execute("DROP TABLE IF EXISTS users")
