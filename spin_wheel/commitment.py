"""
Server Seed Commitment
Commit-reveal lifecycle of a round's server seed:
Uninitialized -> Committed -> Revealed
"""

import logging
import threading
import uuid
from enum import Enum
from typing import Optional, Tuple

from .errors import CommitmentIntegrityError, InvalidStateError
from .seed_codec import hash256, random_seed

logger = logging.getLogger(__name__)


class RoundState(Enum):
    UNINITIALIZED = "uninitialized"
    COMMITTED = "committed"
    REVEALED = "revealed"


class RoundCommitment:
    """
    Commitment state of a single round

    The server seed stays private until reveal(); only the commitment
    (SHA-256 of the seed) is public while the round accepts entries.
    Both transitions are compare-and-set under a lock, so a round can be
    opened once and revealed once even with concurrent callers.
    """

    def __init__(self, round_id=None, nonce=None):
        self.round_id = round_id or str(uuid.uuid4())
        self.nonce = str(nonce) if nonce is not None else self.round_id
        self._state = RoundState.UNINITIALIZED
        self._server_seed = None
        self._commitment = None
        self._lock = threading.Lock()

    def __repr__(self):
        return f"<RoundCommitment {self.round_id} nonce={self.nonce} state={self._state.value}>"

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def commitment(self) -> Optional[str]:
        """Published SHA-256 of the server seed (None before open)"""
        return self._commitment

    @property
    def revealed_seed(self) -> Optional[str]:
        """The server seed, only once the round has been revealed"""
        if self._state is RoundState.REVEALED:
            return self._server_seed
        return None

    def open(self, seed_source=random_seed) -> Tuple[str, str]:
        """
        Generate the server seed and commit to it

        Returns:
            tuple: (server_seed, commitment). Only the commitment may be
            published at this stage.

        Raises:
            InvalidStateError: If the round is already committed or revealed
            EntropySourceError: If no secure seed could be generated
        """
        with self._lock:
            if self._state is not RoundState.UNINITIALIZED:
                raise InvalidStateError(
                    f"Round {self.round_id} cannot be opened from state {self._state.value}"
                )
            server_seed = seed_source()
            self._server_seed = server_seed
            self._commitment = hash256(server_seed)
            self._state = RoundState.COMMITTED
            return server_seed, self._commitment

    def reveal(self) -> str:
        """
        Reveal the server seed (at most once)

        Raises:
            InvalidStateError: Before open or on a second reveal
            CommitmentIntegrityError: If the held seed no longer matches the
                commitment published at open time
        """
        with self._lock:
            if self._state is not RoundState.COMMITTED:
                raise InvalidStateError(
                    f"Round {self.round_id} cannot be revealed from state {self._state.value}"
                )
            self._state = RoundState.REVEALED
            server_seed = self._server_seed

        actual = hash256(server_seed)
        if actual != self._commitment:
            logger.error(
                f"❌ Commitment integrity failure for round {self.round_id}: "
                f"expected {self._commitment}, got {actual}"
            )
            raise CommitmentIntegrityError(self.round_id, self._commitment, actual)
        return server_seed


class CommitmentManager:
    """
    Opens and reveals rounds for one game instance

    At most one round may be committed and awaiting reveal at a time.
    """

    def __init__(self, seed_source=random_seed):
        self._seed_source = seed_source
        self._active = None
        self._lock = threading.Lock()

    @property
    def active_round(self) -> Optional[RoundCommitment]:
        """The round currently committed and awaiting reveal, if any"""
        return self._active

    def new_round(self, round_id=None, nonce=None) -> RoundCommitment:
        return RoundCommitment(round_id=round_id, nonce=nonce)

    def open_round(self, round_commitment: RoundCommitment) -> Tuple[str, str]:
        """
        Commit a fresh server seed for the round

        Returns:
            tuple: (server_seed, commitment)

        Raises:
            InvalidStateError: If another round is still awaiting reveal, or
                this round was already opened
        """
        with self._lock:
            active = self._active
            if active is not None and active is not round_commitment and active.state is RoundState.COMMITTED:
                raise InvalidStateError(
                    f"Round {active.round_id} must be revealed before round "
                    f"{round_commitment.round_id} can open"
                )
            result = round_commitment.open(self._seed_source)
            self._active = round_commitment

        logger.info(
            f"🔒 Round {round_commitment.round_id} committed "
            f"(nonce {round_commitment.nonce}, server seed hash {round_commitment.commitment})"
        )
        return result

    def reveal_round(self, round_commitment: RoundCommitment) -> str:
        """Reveal the round's server seed; see RoundCommitment.reveal"""
        try:
            server_seed = round_commitment.reveal()
        finally:
            with self._lock:
                if self._active is round_commitment and round_commitment.state is not RoundState.COMMITTED:
                    self._active = None

        logger.info(f"🔓 Round {round_commitment.round_id} revealed server seed {server_seed}")
        return server_seed
