"""
Weighted Outcome Resolver
Turns revealed seeds into a deterministic draw and maps the draw onto the
pot, where each participant's share of the wheel equals their contribution.

Each entry owns a contiguous range of the total weight, in pot order.
Example: A (10) = positions 0-9, B (30) = 10-39, C (60) = 40-99
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .config import (
    DRAW_HEX_CHARS,
    DRAW_MODULUS,
    FAIRNESS_SIMULATIONS,
    MAX_HOUSE_FEE_BASIS_POINTS,
    SEED_DELIMITER,
)
from .errors import NoEligibleParticipantsError, WeightOverflowError
from .models import Entry, RoundOutcome, coerce_entries
from .seed_codec import hash256, hash512, random_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightRange:
    """Half-open interval [start, end) of the total weight owned by one entry"""
    participant_id: str
    weight: int
    start: int
    end: int

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end


def build_weight_ranges(entries: Iterable) -> Tuple[List[WeightRange], int]:
    """
    Build cumulative weight ranges over the entries in their given order

    Zero-weight entries get an empty range and can never be selected.

    Returns:
        tuple: (list of WeightRange, total weight)
    """
    ranges = []
    cumulative = 0
    for entry in coerce_entries(entries):
        ranges.append(WeightRange(entry.participant_id, entry.weight, cumulative, cumulative + entry.weight))
        cumulative += entry.weight
    return ranges, cumulative


def compute_payout(total_pot: int, fee_basis_points: int) -> Tuple[int, int]:
    """
    Split the pot between the house and the winner

    Returns:
        tuple: (house_fee, winner_payout), fee rounded down
    """
    if not 0 <= fee_basis_points <= MAX_HOUSE_FEE_BASIS_POINTS:
        raise ValueError(
            f"house fee must be between 0 and {MAX_HOUSE_FEE_BASIS_POINTS} basis points, got {fee_basis_points}"
        )
    house_fee = total_pot * fee_basis_points // 10_000
    return house_fee, total_pot - house_fee


class WeightedOutcomeResolver:
    """Deterministic, stateless winner selection; safe to share across threads"""

    def __init__(self, modulus: int = DRAW_MODULUS):
        if isinstance(modulus, bool) or not isinstance(modulus, int) or modulus < 2:
            raise ValueError(f"draw modulus must be an integer >= 2, got {modulus!r}")
        self.modulus = modulus

    def __repr__(self):
        return f"<WeightedOutcomeResolver modulus={self.modulus}>"

    def compute_draw(self, server_seed: str, client_seed: str, nonce) -> int:
        """
        Derive the round's draw from the three seeds

        Algorithm:
        1. Concatenate: "server_seed-client_seed-nonce"
        2. Compute SHA-512 of its UTF-8 bytes
        3. Convert first 8 hex chars to integer (0-4294967295)
        4. Reduce modulo the resolver's modulus

        Returns:
            int: Draw in [0, modulus)
        """
        combined = SEED_DELIMITER.join((str(server_seed), str(client_seed), str(nonce)))
        digest = hash512(combined)
        return int(digest[:DRAW_HEX_CHARS], 16) % self.modulus

    def check_total_weight(self, total_weight: int) -> None:
        """
        Ensure every position of a pot can be reached by the draw

        The draw is below the modulus, so a pot heavier than the modulus
        would leave the entries past it with no chance to win.
        """
        if total_weight == 0:
            raise NoEligibleParticipantsError("Cannot select a winner from a pot with zero total weight")
        if total_weight > self.modulus:
            raise WeightOverflowError(total_weight, self.modulus)

    def select_winner(self, entries: Iterable, draw: int) -> str:
        """
        Map a draw onto the weighted entries

        The draw is reduced into the weight space (position = draw mod total
        weight) and the entry whose range contains the position wins.
        Equal weights are not a tie: each entry keeps its own range.

        Raises:
            NoEligibleParticipantsError: If the total weight is zero
            WeightOverflowError: If the total weight exceeds the modulus
        """
        ranges, total_weight = build_weight_ranges(entries)
        self.check_total_weight(total_weight)

        position = draw % total_weight
        for weight_range in ranges:
            if weight_range.contains(position):
                return weight_range.participant_id

        # Unreachable while ranges cover [0, total_weight)
        raise AssertionError(f"position {position} outside weight ranges (total {total_weight})")

    def settle_round(self, server_seed: str, client_seed: str, nonce, entries: Iterable) -> RoundOutcome:
        """
        Produce the authoritative outcome of a round

        Must be called exactly once per round, after the server seed has
        been revealed.
        """
        entries = coerce_entries(entries)
        draw = self.compute_draw(server_seed, client_seed, nonce)
        winner = self.select_winner(entries, draw)
        return RoundOutcome(
            winner_participant_id=winner,
            winning_draw=draw,
            revealed_server_seed=server_seed,
            server_seed_hash=hash256(server_seed),
            client_seed=str(client_seed),
            nonce=str(nonce),
        )

    @staticmethod
    def win_probability(entries: Iterable, participant_id: str) -> float:
        """Participant's share of the total weight (0.0 when absent or the pot is empty)"""
        entries = coerce_entries(entries)
        total_weight = sum(e.weight for e in entries)
        if total_weight == 0:
            return 0.0
        own = sum(e.weight for e in entries if e.participant_id == participant_id)
        return own / total_weight


def simulate_fairness(entries: Iterable, num_simulations: int = FAIRNESS_SIMULATIONS,
                      resolver: WeightedOutcomeResolver = None, client_seed: str = "simulation") -> Dict:
    """
    Settle the same pot under many fresh server seeds and compare win counts
    with each participant's expected share

    Args:
        entries: Pot entries
        num_simulations: Number of simulated rounds
        resolver: Resolver to use (default modulus when omitted)
        client_seed: Client seed used for every simulated round

    Returns:
        dict: Simulation results per participant
    """
    if resolver is None:
        resolver = WeightedOutcomeResolver()
    entries = coerce_entries(entries)
    _, total_weight = build_weight_ranges(entries)
    resolver.check_total_weight(total_weight)

    wins = {}
    for entry in entries:
        wins.setdefault(entry.participant_id, 0)

    for nonce in range(num_simulations):
        outcome = resolver.settle_round(random_seed(), client_seed, nonce, entries)
        wins[outcome.winner_participant_id] += 1

    results = []
    for participant_id, actual_wins in wins.items():
        probability = resolver.win_probability(entries, participant_id)
        expected_wins = probability * num_simulations
        variance = ((actual_wins - expected_wins) / expected_wins * 100) if expected_wins > 0 else 0
        results.append({
            "participant_id": participant_id,
            "weight": sum(e.weight for e in entries if e.participant_id == participant_id),
            "expected_wins": expected_wins,
            "actual_wins": actual_wins,
            "variance_percent": variance,
        })

    logger.debug(f"Simulated {num_simulations} rounds over {len(results)} participants")

    return {
        "num_simulations": num_simulations,
        "total_weight": total_weight,
        "participants": len(results),
        "results": results,
    }
