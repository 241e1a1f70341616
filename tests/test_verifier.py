"""
Test Round Verifier
Independent re-verification from public data
"""

import pytest

from spin_wheel.errors import MalformedInputError
from spin_wheel.models import RoundRecord, coerce_entries
from spin_wheel.resolver import WeightedOutcomeResolver
from spin_wheel.seed_codec import hash256
from spin_wheel.verifier import RoundVerifier

ZERO_SEED = "0" * 64
PAIR = [("P1", 1), ("P2", 1)]


def flip_first_char(value):
    return ("1" if value[0] != "1" else "2") + value[1:]


@pytest.fixture
def resolver():
    return WeightedOutcomeResolver()


@pytest.fixture
def verifier(resolver):
    return RoundVerifier(resolver)


@pytest.fixture
def outcome(resolver):
    return resolver.settle_round(ZERO_SEED, "abc", "1", PAIR)


def test_round_trip_example(resolver, verifier, outcome):
    draw = resolver.compute_draw(ZERO_SEED, "abc", "1")
    winner = resolver.select_winner(PAIR, draw)
    for _ in range(5):
        assert resolver.select_winner(PAIR, draw) == winner

    assert outcome.winning_draw == draw
    assert outcome.winner_participant_id == winner
    assert verifier.verify(ZERO_SEED, hash256(ZERO_SEED), "abc", "1", PAIR, winner)


def test_flipped_seed_character_fails(verifier, outcome):
    tampered = flip_first_char(ZERO_SEED)
    assert not verifier.verify(tampered, outcome.server_seed_hash, "abc", "1", PAIR, outcome.winner_participant_id)


def test_swapped_winner_fails(verifier, outcome):
    other = "P2" if outcome.winner_participant_id == "P1" else "P1"
    assert not verifier.verify(ZERO_SEED, outcome.server_seed_hash, "abc", "1", PAIR, other)


def test_different_seed_than_committed_fails(resolver, verifier):
    committed_seed = hash256("committed")
    swapped_seed = hash256("swapped")
    outcome = resolver.settle_round(swapped_seed, "abc", "1", PAIR)
    assert not verifier.verify(
        swapped_seed, hash256(committed_seed), "abc", "1", PAIR, outcome.winner_participant_id
    )


def test_commitment_binding_for_many_seeds(resolver, verifier):
    for i in range(50):
        seed = hash256(f"seed-{i}")
        other = hash256(f"other-{i}")
        winner = resolver.settle_round(other, "abc", i, PAIR).winner_participant_id
        assert not verifier.verify(other, hash256(seed), "abc", i, PAIR, winner)


def test_mismatch_reports_steps(verifier, outcome):
    report = verifier.inspect(flip_first_char(ZERO_SEED), outcome.server_seed_hash, "abc", "1", PAIR, "P1")
    assert not report.commitment_valid
    assert report.computed_draw is None
    assert not report.valid


@pytest.mark.parametrize("server_seed, server_seed_hash", [
    ("not-hex", hash256(ZERO_SEED)),
    (ZERO_SEED, "xyz"),
    (ZERO_SEED, "ab" * 16),
])
def test_malformed_hex_raises(verifier, server_seed, server_seed_hash):
    with pytest.raises(MalformedInputError):
        verifier.verify(server_seed, server_seed_hash, "abc", "1", PAIR, "P1")


def test_empty_pot_claim_does_not_verify(verifier):
    assert not verifier.verify(ZERO_SEED, hash256(ZERO_SEED), "abc", "1", [("P1", 0)], "P1")


def test_verify_record_checks_draw_and_commitment(resolver, verifier, outcome):
    record = RoundRecord(round_id="r1", outcome=outcome, entries=coerce_entries(PAIR), modulus=resolver.modulus)
    assert verifier.verify_record(record)
    assert verifier.verify_record(record, published_commitment=hash256(ZERO_SEED))
    assert not verifier.verify_record(record, published_commitment=hash256("another seed"))

    wrong_draw = RoundRecord.from_dict({**record.to_dict(), "winning_draw": outcome.winning_draw + 2})
    report = verifier.inspect_record(wrong_draw)
    assert report.commitment_valid and report.winner_matches
    assert not report.draw_matches
    assert not verifier.verify_record(wrong_draw)


def test_verify_record_uses_record_modulus():
    roulette = WeightedOutcomeResolver(modulus=37)
    roulette_outcome = roulette.settle_round(ZERO_SEED, "abc", "1", PAIR)
    record = RoundRecord(round_id="r2", outcome=roulette_outcome, entries=coerce_entries(PAIR), modulus=37)
    assert RoundVerifier().verify_record(record)


def test_claim_over_pot_heavier_than_modulus_does_not_verify():
    roulette = RoundVerifier(WeightedOutcomeResolver(modulus=37))
    heavy = [("P1", 30), ("P2", 30)]
    report = roulette.inspect(ZERO_SEED, hash256(ZERO_SEED), "abc", "1", heavy, "P1")
    assert report.commitment_valid
    assert report.computed_winner is None
    assert not report.valid
