"""
Spin Wheel Package
Provably fair, contribution-weighted round settlement for a pooled spin wheel
"""

__version__ = "1.0.0"

# Export main components
from .commitment import CommitmentManager, RoundCommitment, RoundState
from .game import SpinWheelGame
from .ledger import InMemoryRoundLedger, RoundLedger, SqlRoundLedger
from .models import Entry, RoundOutcome, RoundRecord
from .pot import RoundPot
from .resolver import WeightedOutcomeResolver, compute_payout, simulate_fairness
from .verifier import RoundVerifier, VerificationReport

__all__ = [
    'CommitmentManager',
    'RoundCommitment',
    'RoundState',
    'SpinWheelGame',
    'InMemoryRoundLedger',
    'RoundLedger',
    'SqlRoundLedger',
    'Entry',
    'RoundOutcome',
    'RoundRecord',
    'RoundPot',
    'WeightedOutcomeResolver',
    'compute_payout',
    'simulate_fairness',
    'RoundVerifier',
    'VerificationReport',
]
