"""
Spin Wheel command line tools
Verify rounds from public data or the database, list history, run fairness simulations

Usage:
    spin-wheel verify --server-seed S --server-seed-hash H --client-seed C --nonce 1 \\
        --entry alice:10 --entry bob:30 --winner bob
    spin-wheel verify-round ROUND_ID
    spin-wheel history --limit 5
    spin-wheel simulate --entry alice:10 --entry bob:30 --runs 2000
"""

import argparse
import os
import sys

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from utils.logging_config import setup_logging

from .config import DATABASE_URL, DEFAULT_HISTORY_SIZE, DRAW_MODULUS, FAIRNESS_SIMULATIONS
from .errors import SpinWheelError
from .ledger import SqlRoundLedger
from .models import Entry
from .resolver import WeightedOutcomeResolver, simulate_fairness
from .verifier import RoundVerifier


def parse_entry(value):
    """Parse PARTICIPANT:WEIGHT (the id may itself contain colons)"""
    participant_id, sep, weight = value.rpartition(':')
    if not sep or not participant_id:
        raise argparse.ArgumentTypeError(f"entry must look like PARTICIPANT:WEIGHT, got {value!r}")
    try:
        return Entry(participant_id, int(weight))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid entry {value!r}: {e}")


def build_parser():
    parser = argparse.ArgumentParser(prog='spin-wheel', description='Provably fair spin wheel tools')
    parser.add_argument('--database-url', help='Database URL (defaults to DATABASE_URL)')
    parser.add_argument('--log-level', default=None, help='Logging level (defaults to LOG_LEVEL)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    verify = subparsers.add_parser('verify', help='Verify a round from its published values')
    verify.add_argument('--server-seed', required=True, help='Revealed server seed (hex)')
    verify.add_argument('--server-seed-hash', required=True, help='Commitment published before the round')
    verify.add_argument('--client-seed', required=True)
    verify.add_argument('--nonce', required=True)
    verify.add_argument('--entry', dest='entries', action='append', type=parse_entry, required=True,
                        help='PARTICIPANT:WEIGHT, repeat in pot order')
    verify.add_argument('--winner', required=True, help='Claimed winner')
    verify.add_argument('--modulus', type=int, default=DRAW_MODULUS)

    verify_round = subparsers.add_parser('verify-round', help='Verify a stored round')
    verify_round.add_argument('round_id')

    history = subparsers.add_parser('history', help='List recently settled rounds')
    history.add_argument('--limit', type=int, default=DEFAULT_HISTORY_SIZE)

    simulate = subparsers.add_parser('simulate', help='Compare win counts with pot shares')
    simulate.add_argument('--entry', dest='entries', action='append', type=parse_entry, required=True)
    simulate.add_argument('--runs', type=int, default=FAIRNESS_SIMULATIONS)
    simulate.add_argument('--modulus', type=int, default=DRAW_MODULUS)

    return parser


def _print_report(report):
    print(f"   Commitment: {'✅' if report.commitment_valid else '❌'} (computed {report.computed_hash})")
    if report.computed_draw is not None:
        print(f"   Draw:       {'✅' if report.draw_matches else '❌'} (computed {report.computed_draw})")
        print(f"   Winner:     {'✅' if report.winner_matches else '❌'} (computed {report.computed_winner})")


def cmd_verify(args):
    verifier = RoundVerifier(WeightedOutcomeResolver(args.modulus))
    report = verifier.inspect(
        args.server_seed, args.server_seed_hash, args.client_seed, args.nonce, args.entries, args.winner
    )
    print("🔍 Verifying round")
    _print_report(report)
    valid = report.commitment_valid and report.winner_matches
    print("✅ Round is provably fair" if valid else "❌ Verification failed")
    return 0 if valid else 1


def _ledger(args):
    # .env is loaded after config import, so re-read the environment here
    url = args.database_url or os.getenv("DATABASE_URL") or DATABASE_URL
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return SqlRoundLedger(create_engine(url, pool_pre_ping=True))


def cmd_verify_round(args):
    ledger = _ledger(args)
    record = ledger.get(args.round_id)
    published = ledger.get_commitment(args.round_id)
    commitment = published['server_seed_hash'] if published else None

    print(f"🔍 Verifying round {record.round_id} (nonce {record.outcome.nonce})")
    if commitment is None:
        print("   ⚠️ No published commitment found, using the hash stored with the outcome")
    report = RoundVerifier().inspect_record(record, commitment)
    _print_report(report)
    print("✅ Round is provably fair" if report.valid else "❌ Verification failed")
    return 0 if report.valid else 1


def cmd_history(args):
    records = _ledger(args).history(args.limit)
    if not records:
        print("No settled rounds yet")
        return 0
    for record in records:
        print(f"#{record.outcome.nonce} {record.round_id} winner={record.winner} "
              f"draw={record.outcome.winning_draw} pot={record.total_pot} settled={record.settled_at}")
    return 0


def cmd_simulate(args):
    sim = simulate_fairness(args.entries, args.runs, WeightedOutcomeResolver(args.modulus))
    print(f"🎲 {sim['num_simulations']} simulated rounds, total weight {sim['total_weight']}")
    for result in sim['results']:
        print(f"   {result['participant_id']}: {result['actual_wins']} wins "
              f"(expected: {result['expected_wins']:.1f}, variance: {result['variance_percent']:+.1f}%)")
    return 0


COMMANDS = {
    'verify': cmd_verify,
    'verify-round': cmd_verify_round,
    'history': cmd_history,
    'simulate': cmd_simulate,
}


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        return COMMANDS[args.command](args)
    except (SpinWheelError, SQLAlchemyError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
