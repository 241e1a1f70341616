"""
Shared fixtures for the spin wheel tests
"""

import os
import sys

import pytest
from sqlalchemy import create_engine

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spin_wheel.database import setup_spin_database
from spin_wheel.ledger import InMemoryRoundLedger, SqlRoundLedger

ZERO_SEED = "0" * 64


class FakeRedis:
    """Records published messages instead of talking to Redis"""

    def __init__(self):
        self.messages = []

    def ping(self):
        return True

    def publish(self, channel, message):
        self.messages.append((channel, message))
        return 1


@pytest.fixture
def memory_ledger():
    return InMemoryRoundLedger()


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'spin_wheel.db'}")
    assert setup_spin_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_ledger(engine):
    return SqlRoundLedger(engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fixed_seeds():
    """Deterministic seed source: 00..00, 00..01, ..."""
    counter = {'n': 0}

    def source():
        seed = f"{counter['n']:064x}"
        counter['n'] += 1
        return seed

    return source
