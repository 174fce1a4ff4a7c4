"""
Game Data Models

Contains all duel-related data structures and enums.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class LetterStatus(Enum):
    """Per-letter evaluation status. UNUSED is only used for keyboard letters."""
    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"
    UNUSED = "unused"


Verdict = Tuple[LetterStatus, ...]


@dataclass(frozen=True)
class GuessRecord:
    """One row of a guess history: the guessed word and its verdict."""
    guess: str
    verdict: Verdict

    @property
    def is_win(self) -> bool:
        return bool(self.verdict) and all(status == LetterStatus.CORRECT for status in self.verdict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guess": self.guess,
            "verdict": [status.value for status in self.verdict]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuessRecord":
        return cls(
            guess=str(data["guess"]).upper(),
            verdict=tuple(LetterStatus(status) for status in data["verdict"])
        )


class MatchOutcome(Enum):
    """Result of a duel, computed at round boundaries or when the opponent leaves."""
    ONGOING = "ongoing"
    PLAYER_WIN = "player_win"
    OPPONENT_WIN = "opponent_win"
    BOTH_WON = "both_won"
    COLLISION = "collision"
    EXHAUSTED = "exhausted"
    OPPONENT_LEFT = "opponent_left"

    @property
    def is_final(self) -> bool:
        return self != MatchOutcome.ONGOING

    @property
    def is_draw(self) -> bool:
        return self in (MatchOutcome.BOTH_WON, MatchOutcome.COLLISION, MatchOutcome.EXHAUSTED)


@dataclass(frozen=True)
class PeerSnapshot:
    """
    Immutable snapshot of the opponent's shared state as delivered by a channel.

    The history is the opponent's full guess/verdict history and submitted_rounds
    holds every 1-based round index the opponent has marked as submitted.
    """
    player_id: str
    history: Tuple[GuessRecord, ...] = ()
    submitted_rounds: FrozenSet[int] = frozenset()
    name: Optional[str] = None

    def has_submitted(self, round_index: int) -> bool:
        return round_index in self.submitted_rounds and len(self.history) >= round_index

    @classmethod
    def from_player_data(cls, player_id: str, data: Dict[str, Any]) -> "PeerSnapshot":
        """Build a snapshot from the stored player entry (missing fields mean empty)."""
        data = data or {}
        history = tuple(GuessRecord.from_dict(row) for row in data.get("history") or [])
        submitted = frozenset(int(index) for index in data.get("submitted_rounds") or [])
        return cls(player_id=player_id, history=history, submitted_rounds=submitted, name=data.get("name"))


class RejectReason(Enum):
    """Why a submitted guess was rejected."""
    INVALID_LENGTH = "invalid_length"
    NOT_IN_DICTIONARY = "not_in_dictionary"
    DUPLICATE_SUBMISSION = "duplicate_submission"
    MATCH_NOT_ACTIVE = "match_not_active"


@dataclass
class SubmitResult:
    """Outcome of a guess submission."""
    accepted: bool
    verdict: Optional[Verdict] = None
    reason: Optional[RejectReason] = None
    message: str = ""

    @classmethod
    def rejected(cls, reason: RejectReason, message: str) -> "SubmitResult":
        return cls(accepted=False, reason=reason, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "verdict": [status.value for status in self.verdict] if self.verdict else None,
            "reason": self.reason.value if self.reason else None,
            "message": self.message
        }


class EventType(Enum):
    """Externally visible duel events."""
    ROUND_OPENED = "round_opened"
    OPPONENT_SUBMITTED = "opponent_submitted"
    ROUND_REVEALED = "round_revealed"
    GAME_OVER = "game_over"
    SYNC_FAILED = "sync_failed"


@dataclass(frozen=True)
class DuelEvent:
    """A single event on the coordinator's outbound stream."""
    event_type: EventType
    match_id: str
    round_index: int
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "match_id": self.match_id,
            "round": self.round_index,
            **self.payload
        }


def verdict_to_list(verdict: Verdict) -> List[str]:
    """Serialize a verdict for JSON transport."""
    return [status.value for status in verdict]
