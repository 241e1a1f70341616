"""
Round Pot
Accumulates bets into the ordered, weighted entry list a round settles over
"""

import logging
import threading
from typing import Dict, List, Tuple

from .config import MAX_BET_AMOUNT, MAX_PLAYERS, MIN_BET_AMOUNT
from .errors import InvalidBetAmountError, MaxPlayersReachedError
from .models import Entry

logger = logging.getLogger(__name__)


class RoundPot:
    """
    Weighted entries for one round

    A participant's repeat bets are added to their existing entry, which
    keeps the position of their first bet in the pot order. When max_total
    is set (the draw modulus, for a game) the pot never grows past it.
    """

    def __init__(self, max_players=MAX_PLAYERS, min_bet=MIN_BET_AMOUNT, max_bet=MAX_BET_AMOUNT, max_total=None):
        if max_players < 1:
            raise ValueError("max_players must be at least 1")
        if not 0 < min_bet <= max_bet:
            raise ValueError("bet limits must satisfy 0 < min_bet <= max_bet")
        if max_total is not None and max_total < min_bet:
            raise ValueError("max_total must allow at least one minimum bet")
        self.max_total = max_total
        self.max_players = max_players
        self.min_bet = min_bet
        self.max_bet = max_bet
        self._amounts: Dict[str, int] = {}
        self._order: List[str] = []
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._order)

    def __contains__(self, participant_id):
        return participant_id in self._amounts

    def add_bet(self, participant_id: str, amount: int) -> int:
        """
        Add a bet to the pot

        Args:
            participant_id: Wallet or user identifier
            amount: Bet amount in base units

        Returns:
            int: The participant's total contribution after this bet

        Raises:
            InvalidBetAmountError: If amount is outside [min_bet, max_bet]
            InvalidBetAmountError: If the bet would push the pot past max_total
            MaxPlayersReachedError: If a new participant would exceed max_players
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidBetAmountError(f"Bet amount must be an integer, got {amount!r}")
        if not self.min_bet <= amount <= self.max_bet:
            raise InvalidBetAmountError(
                f"Bet amount {amount} outside allowed range {self.min_bet}-{self.max_bet}"
            )
        # Validate the id the same way entries do
        Entry(participant_id, amount)

        with self._lock:
            if self.max_total is not None and sum(self._amounts.values()) + amount > self.max_total:
                raise InvalidBetAmountError(
                    f"Bet amount {amount} would push the pot past its limit of {self.max_total}"
                )
            if participant_id in self._amounts:
                self._amounts[participant_id] += amount
                logger.debug(f"{participant_id} raised their bet to {self._amounts[participant_id]}")
            else:
                if len(self._order) >= self.max_players:
                    raise MaxPlayersReachedError(f"Pot is full ({self.max_players} players)")
                self._amounts[participant_id] = amount
                self._order.append(participant_id)
                logger.debug(f"{participant_id} joined the pot with {amount}")
            return self._amounts[participant_id]

    @property
    def total(self) -> int:
        return sum(self._amounts.values())

    def entries(self) -> Tuple[Entry, ...]:
        """Entries in first-bet order"""
        with self._lock:
            return tuple(Entry(pid, self._amounts[pid]) for pid in self._order)

    def share(self, participant_id: str) -> float:
        """Participant's fraction of the pot (0.0 if absent or the pot is empty)"""
        total = self.total
        if total == 0:
            return 0.0
        return self._amounts.get(participant_id, 0) / total
