"""
Spin Wheel Game
The surface the surrounding application talks to: open a round and publish
its commitment, take bets, reveal and settle, and verify any past round.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from utils.error_helpers import log_exceptions
from utils.logging_config import round_context

from .commitment import CommitmentManager, RoundCommitment, RoundState
from .config import DEFAULT_HISTORY_SIZE, HOUSE_FEE_BASIS_POINTS, MAX_BET_AMOUNT, MAX_PLAYERS, MIN_BET_AMOUNT
from .errors import InvalidStateError, SettlementNotRecordedError
from .ledger import InMemoryRoundLedger, RoundLedger
from .models import Entry, RoundOutcome, RoundRecord, coerce_entries
from .pot import RoundPot
from .publisher import RoundEventPublisher
from .resolver import WeightedOutcomeResolver, compute_payout
from .seed_codec import random_seed
from .verifier import RoundVerifier

logger = logging.getLogger(__name__)


class SpinWheelGame:
    """
    One wheel: a sequence of rounds settled one at a time

    Every round operation runs under one lock, so a bet can never land in a
    pot that is being settled or cancelled.
    """

    def __init__(self, ledger: RoundLedger = None, resolver: WeightedOutcomeResolver = None,
                 publisher: RoundEventPublisher = None, house_fee_bps=HOUSE_FEE_BASIS_POINTS,
                 max_players=MAX_PLAYERS, min_bet=MIN_BET_AMOUNT, max_bet=MAX_BET_AMOUNT,
                 seed_source=random_seed):
        """
        Initialize the game

        Args:
            ledger: Round storage (in-memory when omitted)
            resolver: Winner selection (default draw modulus when omitted)
            publisher: Optional event publisher for round broadcasts
            house_fee_bps: House fee in basis points of the pot
            max_players: Maximum participants per round
            min_bet: Smallest accepted bet in base units
            max_bet: Largest accepted bet in base units
            seed_source: Secure server seed generator
        """
        compute_payout(0, house_fee_bps)  # validates the fee

        self.ledger = ledger if ledger is not None else InMemoryRoundLedger()
        self.resolver = resolver if resolver is not None else WeightedOutcomeResolver()
        self.verifier = RoundVerifier(self.resolver)
        self.publisher = publisher
        self.house_fee_bps = house_fee_bps
        self._seed_source = seed_source
        self.commitments = CommitmentManager(seed_source)

        # The pot may never outgrow the draw, or its last entries could not win
        self._pot_limits = {
            'max_players': max_players,
            'min_bet': min_bet,
            'max_bet': max_bet,
            'max_total': self.resolver.modulus,
        }
        RoundPot(**self._pot_limits)  # validates the limits
        if max_players * max_bet > self.resolver.modulus:
            logger.warning(
                f"⚠️ {max_players} bets of {max_bet} exceed the draw modulus {self.resolver.modulus}; "
                f"pots are capped at the modulus"
            )

        self._round: Optional[RoundCommitment] = None
        self._client_seed: Optional[str] = None
        self._pot: Optional[RoundPot] = None
        self._pending: Optional[RoundRecord] = None
        self._last_round_number = 0
        self._lock = threading.Lock()

        logger.info(
            f"🎡 Spin wheel initialized (modulus {self.resolver.modulus}, house fee {house_fee_bps} bps)"
        )

    @property
    def current_round(self) -> Optional[RoundCommitment]:
        return self._round

    @property
    def pot(self) -> Optional[RoundPot]:
        return self._pot

    @property
    def pending_record(self) -> Optional[RoundRecord]:
        """A settled round whose record the ledger has not accepted yet"""
        return self._pending

    def _next_round_number(self):
        latest = self.ledger.latest()
        nonce = latest.outcome.nonce if latest else ""
        settled = int(nonce) if nonce.isdigit() else 0
        return max(settled, self._last_round_number) + 1

    def _require_open_round(self) -> RoundCommitment:
        if self._round is None or self._round.state is not RoundState.COMMITTED:
            raise InvalidStateError("No round is open")
        return self._round

    def _clear_round(self):
        self._round = None
        self._client_seed = None
        self._pot = None

    def open_round(self, client_seed: str = None) -> Dict:
        """
        Start a round and commit to its server seed

        The commitment is stored in the ledger before the round accepts
        bets; if storing fails the seed is discarded and nothing is open.

        Args:
            client_seed: Client seed for the round (random when omitted)

        Returns:
            dict: round_id, nonce, server_seed_hash and client_seed; all public

        Raises:
            InvalidStateError: If the previous round has not been settled,
                recorded or cancelled
            EntropySourceError: If no secure seed could be generated
            LedgerError: If the commitment could not be stored
        """
        with self._lock:
            if self._pending is not None:
                raise InvalidStateError(f"Round {self._pending.round_id} is settled but not yet recorded")
            if self._round is not None:
                raise InvalidStateError(f"Round {self._round.round_id} is still open")

            number = self._next_round_number()
            round_commitment = self.commitments.new_round(nonce=number)
            client_seed = client_seed or self._seed_source()

            with round_context(round_commitment.round_id, round_commitment.nonce):
                _, server_seed_hash = self.commitments.open_round(round_commitment)
                try:
                    self.ledger.record_commitment(
                        round_commitment.round_id, round_commitment.nonce, server_seed_hash, client_seed
                    )
                except Exception:
                    # Never published: burn the seed so the next open starts clean
                    self.commitments.reveal_round(round_commitment)
                    logger.error("❌ Commitment could not be stored, round discarded")
                    raise

            self._round = round_commitment
            self._client_seed = client_seed
            self._pot = RoundPot(**self._pot_limits)
            self._last_round_number = number

        if self.publisher is not None:
            self.publisher.publish_round_opened(
                round_commitment.round_id, round_commitment.nonce, server_seed_hash, client_seed
            )

        return {
            'round_id': round_commitment.round_id,
            'nonce': round_commitment.nonce,
            'server_seed_hash': server_seed_hash,
            'client_seed': client_seed,
        }

    def place_bet(self, participant_id: str, amount: int) -> int:
        """Add a bet to the open round's pot; returns the participant's total"""
        with self._lock:
            self._require_open_round()
            return self._pot.add_bet(participant_id, amount)

    def _settle_open_round(self, entries) -> RoundRecord:
        round_commitment = self._require_open_round()
        entries = coerce_entries(entries) if entries is not None else self._pot.entries()
        total_pot = sum(e.weight for e in entries)
        # Checked before the reveal so an unsettleable round can still be cancelled
        self.resolver.check_total_weight(total_pot)

        with round_context(round_commitment.round_id, round_commitment.nonce):
            try:
                with log_exceptions("settling round"):
                    server_seed = self.commitments.reveal_round(round_commitment)
                    outcome = self.resolver.settle_round(
                        server_seed, self._client_seed, round_commitment.nonce, entries
                    )
            finally:
                if round_commitment.state is RoundState.REVEALED:
                    self._clear_round()

            house_fee, winner_payout = compute_payout(total_pot, self.house_fee_bps)
            share = self.resolver.win_probability(entries, outcome.winner_participant_id)
            logger.info(f"🎲 Draw {outcome.winning_draw} over total pot {total_pot}")
            logger.info(f"🎉 Winner: {outcome.winner_participant_id} ({share * 100:.2f}% of pot), payout {winner_payout}")

        return RoundRecord(
            round_id=round_commitment.round_id,
            outcome=outcome,
            entries=entries,
            modulus=self.resolver.modulus,
            total_pot=total_pot,
            house_fee=house_fee,
            winner_payout=winner_payout,
        )

    def reveal_and_settle(self, entries=None) -> RoundOutcome:
        """
        Close the open round: reveal the server seed, select the winner and
        store the record

        When an earlier call settled a round but the ledger rejected the
        record, this call stores that same record instead (entries are
        ignored) and returns its outcome.

        Args:
            entries: Final weighted participant list; the round's own pot
                when omitted

        Returns:
            RoundOutcome: The settled outcome

        Raises:
            InvalidStateError: If no round is open
            NoEligibleParticipantsError: If the entries carry no weight
            WeightOverflowError: If the entries outweigh the draw modulus
                (both leave the round open so it can be cancelled and refunded)
            CommitmentIntegrityError: If the seed no longer matches its commitment
            SettlementNotRecordedError: If the ledger could not store the
                record; the record is attached and kept for a retry
        """
        with self._lock:
            if self._pending is None:
                self._pending = self._settle_open_round(entries)
            record = self._pending

            with round_context(record.round_id, record.outcome.nonce):
                try:
                    self.ledger.append(record)
                except Exception as e:
                    logger.error("❌ Settled round could not be recorded, keeping it for a retry")
                    raise SettlementNotRecordedError(record, e) from e
            self._pending = None

        if self.publisher is not None:
            self.publisher.publish_round_settled(record)

        return record.outcome

    def cancel_round(self) -> Tuple[Entry, ...]:
        """
        Abandon the open round, e.g. when nobody bet

        The server seed is still revealed so the published commitment can be
        checked.

        Returns:
            tuple: Entries whose bets should be refunded
        """
        with self._lock:
            round_commitment = self._require_open_round()
            refunds = self._pot.entries()
            with round_context(round_commitment.round_id, round_commitment.nonce):
                try:
                    server_seed = self.commitments.reveal_round(round_commitment)
                finally:
                    self._clear_round()
                logger.info(f"🚫 Round cancelled, refunding {len(refunds)} entries")

        if self.publisher is not None:
            self.publisher.publish_round_cancelled(round_commitment.round_id, server_seed)

        return refunds

    def verify_round(self, record) -> bool:
        """
        Check a historical round against its published commitment

        Args:
            record: RoundRecord, its dict form, or its JSON

        Returns:
            bool: True if the outcome is exactly what the seeds produce
        """
        if isinstance(record, str):
            record = RoundRecord.from_json(record)
        elif isinstance(record, dict):
            record = RoundRecord.from_dict(record)

        published = self.ledger.get_commitment(record.round_id)
        if published is None:
            return self.verifier.verify_record(record)

        outcome = record.outcome
        if published['client_seed'] != outcome.client_seed or str(published['nonce']) != outcome.nonce:
            logger.warning(f"Round {record.round_id} seeds differ from the published commitment")
            return False
        return self.verifier.verify_record(record, published['server_seed_hash'])

    def history(self, limit=DEFAULT_HISTORY_SIZE) -> List[RoundRecord]:
        return self.ledger.history(limit)
