"""
Spin Wheel Errors
Exception types raised by round settlement, verification and storage
"""


class SpinWheelError(Exception):
    """Base class for all spin wheel errors"""


class EntropySourceError(SpinWheelError):
    """The secure random source is unavailable; the round must not open"""


class InvalidStateError(SpinWheelError):
    """A round operation was attempted out of sequence"""


class CommitmentIntegrityError(SpinWheelError):
    """The revealed server seed does not hash to the published commitment"""

    def __init__(self, round_id, expected_hash, actual_hash):
        self.round_id = round_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Commitment mismatch for round {round_id}: "
            f"expected {expected_hash}, got {actual_hash}"
        )


class NoEligibleParticipantsError(SpinWheelError):
    """Settlement was attempted with zero total weight"""


class WeightOverflowError(SpinWheelError, ValueError):
    """
    The pot's total weight exceeds the draw modulus

    Positions at or above the modulus could never be drawn, so the pot
    cannot be settled fairly.
    """

    def __init__(self, total_weight, modulus):
        self.total_weight = total_weight
        self.modulus = modulus
        super().__init__(f"Total weight {total_weight} exceeds the draw modulus {modulus}")


class MalformedInputError(SpinWheelError, ValueError):
    """Input could not be parsed (bad hex, wrong digest length, broken record)"""


class InvalidEntryError(SpinWheelError, ValueError):
    """An entry has an empty participant id or a negative weight"""


class InvalidBetAmountError(SpinWheelError, ValueError):
    """A bet is outside the allowed range"""


class MaxPlayersReachedError(SpinWheelError):
    """The pot already holds the maximum number of participants"""


class LedgerError(SpinWheelError):
    """Round storage failed"""


class DuplicateRoundError(LedgerError):
    """A commitment or outcome was already recorded for this round"""


class RoundNotFoundError(LedgerError):
    """No record exists for the requested round"""


class SettlementNotRecordedError(LedgerError):
    """
    A round was settled but its record could not be stored

    The seed is already revealed, so the outcome is final. The record is
    attached and stays pending on the game until a retry stores it.
    """

    def __init__(self, record, cause):
        self.record = record
        super().__init__(f"Round {record.round_id} settled but not recorded: {cause}")
