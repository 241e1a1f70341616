"""
Round Ledger
Append-only storage of published commitments and settled round records
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from utils.error_helpers import db_error_handler

from .config import DEFAULT_HISTORY_SIZE
from .errors import DuplicateRoundError, LedgerError, RoundNotFoundError
from .models import RoundRecord

logger = logging.getLogger(__name__)


class RoundLedger(ABC):
    """Narrow storage contract used by the game; records are never updated"""

    @abstractmethod
    def record_commitment(self, round_id: str, nonce: str, server_seed_hash: str, client_seed: str) -> None:
        """Store the commitment published when a round opens"""

    @abstractmethod
    def get_commitment(self, round_id: str) -> Optional[Dict]:
        """Published commitment for a round, or None"""

    @abstractmethod
    def append(self, record: RoundRecord) -> None:
        """Store a settled round; raises DuplicateRoundError if already stored"""

    @abstractmethod
    def get(self, round_id: str) -> RoundRecord:
        """Settled round by id; raises RoundNotFoundError"""

    @abstractmethod
    def history(self, limit: int = DEFAULT_HISTORY_SIZE) -> List[RoundRecord]:
        """Most recently settled rounds first"""

    def latest(self) -> Optional[RoundRecord]:
        rounds = self.history(limit=1)
        return rounds[0] if rounds else None


class InMemoryRoundLedger(RoundLedger):
    """Process-local ledger (tests and embedding)"""

    def __init__(self):
        self._commitments: Dict[str, Dict] = {}
        self._records: Dict[str, RoundRecord] = {}
        self._order: List[str] = []
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._order)

    def record_commitment(self, round_id, nonce, server_seed_hash, client_seed):
        with self._lock:
            if round_id in self._commitments:
                raise DuplicateRoundError(f"Commitment for round {round_id} already recorded")
            self._commitments[round_id] = {
                'round_id': round_id,
                'nonce': str(nonce),
                'server_seed_hash': server_seed_hash,
                'client_seed': client_seed,
                'committed_at': datetime.now(timezone.utc).isoformat(),
            }

    def get_commitment(self, round_id):
        commitment = self._commitments.get(round_id)
        return dict(commitment) if commitment else None

    def append(self, record):
        with self._lock:
            if record.round_id in self._records:
                raise DuplicateRoundError(f"Round {record.round_id} already settled")
            self._records[record.round_id] = record
            self._order.append(record.round_id)

    def get(self, round_id):
        try:
            return self._records[round_id]
        except KeyError:
            raise RoundNotFoundError(f"Round {round_id} not found") from None

    def history(self, limit=DEFAULT_HISTORY_SIZE):
        with self._lock:
            recent = self._order[::-1][:limit]
            return [self._records[round_id] for round_id in recent]


class SqlRoundLedger(RoundLedger):
    """SQLAlchemy-backed ledger (SQLite or PostgreSQL)"""

    def __init__(self, engine):
        self.engine = engine

    @db_error_handler(LedgerError)
    def record_commitment(self, round_id, nonce, server_seed_hash, client_seed):
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                    INSERT INTO spin_round_commitments
                        (round_id, nonce, server_seed_hash, client_seed, committed_at)
                    VALUES
                        (:round_id, :nonce, :server_seed_hash, :client_seed, :committed_at)
                """), {
                    'round_id': round_id,
                    'nonce': str(nonce),
                    'server_seed_hash': server_seed_hash,
                    'client_seed': client_seed,
                    'committed_at': datetime.now(timezone.utc).isoformat(),
                })
        except IntegrityError as e:
            raise DuplicateRoundError(f"Commitment for round {round_id} already recorded") from e

    @db_error_handler(LedgerError)
    def get_commitment(self, round_id):
        with self.engine.begin() as conn:
            result = conn.execute(text("""
                SELECT round_id, nonce, server_seed_hash, client_seed, committed_at
                FROM spin_round_commitments
                WHERE round_id = :round_id
            """), {'round_id': round_id})
            row = result.fetchone()

        if not row:
            return None
        return {
            'round_id': row[0],
            'nonce': row[1],
            'server_seed_hash': row[2],
            'client_seed': row[3],
            'committed_at': row[4],
        }

    @db_error_handler(LedgerError)
    def append(self, record):
        params = record.to_dict()
        params['entries'] = json.dumps(params['entries'])
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                    INSERT INTO spin_round_outcomes
                        (round_id, nonce, winner_participant_id, winning_draw,
                         revealed_server_seed, server_seed_hash, client_seed,
                         entries, modulus, total_pot, house_fee, winner_payout, settled_at)
                    VALUES
                        (:round_id, :nonce, :winner_participant_id, :winning_draw,
                         :revealed_server_seed, :server_seed_hash, :client_seed,
                         :entries, :modulus, :total_pot, :house_fee, :winner_payout, :settled_at)
                """), params)
        except IntegrityError as e:
            raise DuplicateRoundError(f"Round {record.round_id} already settled") from e

        logger.debug(f"Stored round {record.round_id} (winner {record.winner})")

    _SELECT_OUTCOME = """
        SELECT round_id, nonce, winner_participant_id, winning_draw,
               revealed_server_seed, server_seed_hash, client_seed,
               entries, modulus, total_pot, house_fee, winner_payout, settled_at
        FROM spin_round_outcomes
    """

    @staticmethod
    def _row_to_record(row):
        return RoundRecord.from_dict(dict(row._mapping))

    @db_error_handler(LedgerError)
    def _fetch_outcome(self, round_id):
        with self.engine.begin() as conn:
            result = conn.execute(
                text(self._SELECT_OUTCOME + " WHERE round_id = :round_id"),
                {'round_id': round_id},
            )
            return result.fetchone()

    def get(self, round_id):
        row = self._fetch_outcome(round_id)
        if not row:
            raise RoundNotFoundError(f"Round {round_id} not found")
        return self._row_to_record(row)

    @db_error_handler(LedgerError)
    def history(self, limit=DEFAULT_HISTORY_SIZE):
        with self.engine.begin() as conn:
            result = conn.execute(
                text(self._SELECT_OUTCOME + " ORDER BY settled_at DESC LIMIT :limit"),
                {'limit': limit},
            )
            return [self._row_to_record(row) for row in result]
