"""
Round Data Model
Entries, settled outcomes and the persisted round record
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from .errors import InvalidEntryError, MalformedInputError

OUTCOME_FIELDS = (
    "winner_participant_id",
    "winning_draw",
    "revealed_server_seed",
    "server_seed_hash",
    "client_seed",
    "nonce",
)


@dataclass(frozen=True)
class Entry:
    """One participant's contribution to the pot; order in the pot matters"""
    participant_id: str
    weight: int

    def __post_init__(self):
        if not isinstance(self.participant_id, str) or not self.participant_id:
            raise InvalidEntryError("participant_id must be a non-empty string")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise InvalidEntryError(f"weight for {self.participant_id} must be an integer")
        if self.weight < 0:
            raise InvalidEntryError(f"weight for {self.participant_id} cannot be negative")

    @classmethod
    def coerce(cls, value) -> "Entry":
        """Build an Entry from an Entry, a (participant_id, weight) pair or a dict"""
        if isinstance(value, Entry):
            return value
        if isinstance(value, dict):
            try:
                return cls(value["participant_id"], value["weight"])
            except KeyError as e:
                raise InvalidEntryError(f"entry is missing {e}") from e
        try:
            participant_id, weight = value
        except (TypeError, ValueError) as e:
            raise InvalidEntryError(f"cannot build an entry from {value!r}") from e
        return cls(participant_id, weight)

    def to_dict(self) -> Dict[str, Any]:
        return {"participant_id": self.participant_id, "weight": self.weight}


def coerce_entries(entries: Iterable) -> Tuple[Entry, ...]:
    """Normalize an iterable of entry-like values into an ordered tuple of Entry"""
    return tuple(Entry.coerce(e) for e in entries)


@dataclass(frozen=True)
class RoundOutcome:
    """The settled result of one round; everything needed to re-verify it"""
    winner_participant_id: str
    winning_draw: int
    revealed_server_seed: str
    server_seed_hash: str
    client_seed: str
    nonce: str

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in OUTCOME_FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundOutcome":
        missing = [name for name in OUTCOME_FIELDS if name not in data]
        if missing:
            raise MalformedInputError(f"round outcome is missing fields: {', '.join(missing)}")
        try:
            winning_draw = int(data["winning_draw"])
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"winning_draw is not an integer: {data['winning_draw']!r}") from e
        return cls(
            winner_participant_id=str(data["winner_participant_id"]),
            winning_draw=winning_draw,
            revealed_server_seed=str(data["revealed_server_seed"]),
            server_seed_hash=str(data["server_seed_hash"]),
            client_seed=str(data["client_seed"]),
            nonce=str(data["nonce"]),
        )


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RoundRecord:
    """
    A settled round as stored in the ledger

    The outcome plus the public context a third party needs to recompute it:
    the ordered entries and the draw modulus. Payout figures are bookkeeping
    and play no part in verification.
    """
    round_id: str
    outcome: RoundOutcome
    entries: Tuple[Entry, ...]
    modulus: int
    total_pot: int = 0
    house_fee: int = 0
    winner_payout: int = 0
    settled_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data = {"round_id": self.round_id}
        data.update(self.outcome.to_dict())
        data.update({
            "entries": [e.to_dict() for e in self.entries],
            "modulus": self.modulus,
            "total_pot": self.total_pot,
            "house_fee": self.house_fee,
            "winner_payout": self.winner_payout,
            "settled_at": self.settled_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundRecord":
        for name in ("round_id", "entries", "modulus"):
            if name not in data:
                raise MalformedInputError(f"round record is missing field: {name}")
        entries = data["entries"]
        if isinstance(entries, str):
            try:
                entries = json.loads(entries)
            except json.JSONDecodeError as e:
                raise MalformedInputError(f"entries are not valid JSON: {e}") from e
        try:
            modulus = int(data["modulus"])
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"modulus is not an integer: {data['modulus']!r}") from e
        settled_at = data.get("settled_at")
        if isinstance(settled_at, datetime):
            settled_at = settled_at.isoformat()
        return cls(
            round_id=str(data["round_id"]),
            outcome=RoundOutcome.from_dict(data),
            entries=coerce_entries(entries),
            modulus=modulus,
            total_pot=int(data.get("total_pot") or 0),
            house_fee=int(data.get("house_fee") or 0),
            winner_payout=int(data.get("winner_payout") or 0),
            settled_at=settled_at or _utc_now(),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, payload: str) -> "RoundRecord":
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"round record is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedInputError("round record must be a JSON object")
        return cls.from_dict(data)

    @property
    def winner(self) -> Optional[str]:
        return self.outcome.winner_participant_id
