"""
Round Verifier
Independent re-computation of a settled round from public data only:
the commitment published before the round, the seed revealed after it,
the client seed, the nonce and the recorded entries.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from .errors import NoEligibleParticipantsError, WeightOverflowError
from .models import RoundRecord, coerce_entries
from .resolver import WeightedOutcomeResolver
from .seed_codec import SHA256_HEX_LENGTH, hash256, parse_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationReport:
    """Result of each verification step and the recomputed values"""
    commitment_valid: bool
    computed_hash: str
    computed_draw: Optional[int] = None
    computed_winner: Optional[str] = None
    draw_matches: bool = False
    winner_matches: bool = False

    @property
    def valid(self) -> bool:
        return self.commitment_valid and self.draw_matches and self.winner_matches


class RoundVerifier:
    """Side-effect free; gives the same answer as settlement for the same inputs"""

    def __init__(self, resolver: WeightedOutcomeResolver = None):
        self.resolver = resolver if resolver is not None else WeightedOutcomeResolver()

    def inspect(self, server_seed: str, server_seed_hash: str, client_seed: str, nonce,
                entries: Iterable, claimed_winner: str, claimed_draw: Optional[int] = None) -> VerificationReport:
        """
        Recompute commitment, draw and winner and report each check

        A claimed_draw of None skips the draw comparison (treated as matching).

        Raises:
            MalformedInputError: If server_seed or server_seed_hash is not
                well-formed hex
        """
        parse_hex(server_seed, field="server_seed")
        parse_hex(server_seed_hash, expected_bytes=SHA256_HEX_LENGTH // 2, field="server_seed_hash")
        entries = coerce_entries(entries)

        computed_hash = hash256(server_seed)
        if computed_hash != server_seed_hash.lower():
            return VerificationReport(commitment_valid=False, computed_hash=computed_hash)

        draw = self.resolver.compute_draw(server_seed, client_seed, nonce)
        try:
            winner = self.resolver.select_winner(entries, draw)
        except (NoEligibleParticipantsError, WeightOverflowError) as e:
            logger.warning(f"Round with nonce {nonce} cannot be settled ({e}); claim cannot hold")
            winner = None

        return VerificationReport(
            commitment_valid=True,
            computed_hash=computed_hash,
            computed_draw=draw,
            computed_winner=winner,
            draw_matches=claimed_draw is None or int(claimed_draw) == draw,
            winner_matches=winner is not None and winner == claimed_winner,
        )

    def verify(self, server_seed: str, server_seed_hash: str, client_seed: str, nonce,
               entries: Iterable, claimed_winner: str) -> bool:
        """
        True when the seed matches its commitment and the recomputed winner
        equals claimed_winner. A mismatch is a result, not an error.
        """
        report = self.inspect(server_seed, server_seed_hash, client_seed, nonce, entries, claimed_winner)
        return report.commitment_valid and report.winner_matches

    def inspect_record(self, record: RoundRecord, published_commitment: Optional[str] = None) -> VerificationReport:
        """
        Verify a stored round record

        Args:
            record: The settled round
            published_commitment: The commitment published before the round
                opened; defaults to the hash stored with the outcome
        """
        outcome = record.outcome
        verifier = self
        if record.modulus != self.resolver.modulus:
            verifier = RoundVerifier(WeightedOutcomeResolver(record.modulus))

        report = verifier.inspect(
            outcome.revealed_server_seed,
            published_commitment or outcome.server_seed_hash,
            outcome.client_seed,
            outcome.nonce,
            record.entries,
            outcome.winner_participant_id,
            claimed_draw=outcome.winning_draw,
        )

        if published_commitment and published_commitment.lower() != outcome.server_seed_hash.lower():
            logger.warning(
                f"Round {record.round_id} outcome hash {outcome.server_seed_hash} "
                f"differs from published commitment {published_commitment}"
            )
            report = replace(report, commitment_valid=False)
        return report

    def verify_record(self, record: RoundRecord, published_commitment: Optional[str] = None) -> bool:
        return self.inspect_record(record, published_commitment).valid
