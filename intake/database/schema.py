from intake.database.connection import Database

DOCUMENTS_DDL = """
CREATE TABLE IF NOT EXISTS documents (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    seq BIGINT GENERATED ALWAYS AS IDENTITY UNIQUE,
    file_name TEXT NOT NULL,
    storage_path TEXT NOT NULL UNIQUE,
    owner_id TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

DOCUMENTS_OWNER_INDEX_DDL = """
CREATE INDEX IF NOT EXISTS documents_owner_uploaded_idx
    ON documents (owner_id, uploaded_at DESC)
"""


def create_schema(database: Database) -> None:
    """Create the documents table and its indexes if missing."""
    with database.connection() as conn:
        conn.execute(DOCUMENTS_DDL)
        conn.execute(DOCUMENTS_OWNER_INDEX_DDL)
        conn.commit()
