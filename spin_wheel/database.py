"""
Database Schema Setup for the Spin Wheel
Creates the append-only tables that hold published commitments and settled rounds
"""

from sqlalchemy import inspect, text
import logging

logger = logging.getLogger(__name__)

SPIN_SCHEMA_SQL = """
-- ============================================
-- SPIN WHEEL DATABASE SCHEMA
-- ============================================

-- Commitments published before a round accepts entries
CREATE TABLE IF NOT EXISTS spin_round_commitments (
    round_id TEXT PRIMARY KEY,
    nonce TEXT NOT NULL,
    server_seed_hash TEXT NOT NULL,
    client_seed TEXT NOT NULL,
    committed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Settled rounds (one row per round, never updated)
CREATE TABLE IF NOT EXISTS spin_round_outcomes (
    round_id TEXT PRIMARY KEY,
    nonce TEXT NOT NULL,
    winner_participant_id TEXT NOT NULL,
    winning_draw BIGINT NOT NULL,
    revealed_server_seed TEXT NOT NULL,
    server_seed_hash TEXT NOT NULL,
    client_seed TEXT NOT NULL,
    entries TEXT NOT NULL,  -- JSON list of {participant_id, weight} in pot order
    modulus BIGINT NOT NULL,
    total_pot BIGINT DEFAULT 0,
    house_fee BIGINT DEFAULT 0,
    winner_payout BIGINT DEFAULT 0,
    settled_at TEXT NOT NULL  -- ISO-8601 UTC
);

-- ============================================
-- INDICES FOR PERFORMANCE
-- ============================================

CREATE INDEX IF NOT EXISTS idx_spin_outcomes_settled ON spin_round_outcomes(settled_at);
CREATE INDEX IF NOT EXISTS idx_spin_outcomes_winner ON spin_round_outcomes(winner_participant_id);
"""

REQUIRED_TABLES = ['spin_round_commitments', 'spin_round_outcomes']


def _split_statements(sql):
    """Split the schema into single statements (SQLite executes one at a time)"""
    statements = []
    current_statement = []

    for line in sql.split('\n'):
        stripped = line.strip()
        if not stripped or stripped.startswith('--'):
            continue

        current_statement.append(line)

        if stripped.endswith(';'):
            statements.append('\n'.join(current_statement))
            current_statement = []

    return statements


def setup_spin_database(engine):
    """
    Create all spin wheel tables and indices

    Args:
        engine: SQLAlchemy engine instance

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        logger.info("Setting up spin wheel database schema...")

        with engine.begin() as conn:
            for statement in _split_statements(SPIN_SCHEMA_SQL):
                conn.execute(text(statement))

        logger.info("✅ Spin wheel database schema created successfully")
        return True

    except Exception as e:
        logger.error(f"❌ Failed to setup spin wheel database: {e}")
        return False


def verify_spin_schema(engine):
    """
    Verify that all required tables exist

    Args:
        engine: SQLAlchemy engine instance

    Returns:
        dict: Status of each table (True/False)
    """
    existing = set(inspect(engine).get_table_names())
    status = {table: table in existing for table in REQUIRED_TABLES}

    for table, ok in status.items():
        if not ok:
            logger.warning(f"⚠️ Missing table: {table}")

    return status
