"""
Round State Machine

Per-round submission bookkeeping for a duel. Each round moves through
Open -> OneSubmitted -> BothSubmitted -> Revealed. The reveal is guarded by a
latch that is set in the same synchronous step that observes both submissions,
so the reveal logic for a round runs at most once no matter how many triggers
(local submit, remote notification, duplicate notification) observe it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from ..config.game_settings import MAX_ROUNDS
from ..models.errors import RoundOrderError


class Side(Enum):
    """Which participant a submission belongs to, from the local point of view."""
    SELF = "self"
    PEER = "peer"


class RoundPhase(Enum):
    OPEN = "open"
    ONE_SUBMITTED = "one_submitted"
    BOTH_SUBMITTED = "both_submitted"
    REVEALED = "revealed"


@dataclass
class RoundState:
    """Submission flags and reveal latch for a single round."""
    index: int
    submitted_self: bool = False
    submitted_peer: bool = False
    reveal_latched: bool = False
    revealed: bool = False

    @property
    def both_submitted(self) -> bool:
        return self.submitted_self and self.submitted_peer

    @property
    def phase(self) -> RoundPhase:
        if self.revealed:
            return RoundPhase.REVEALED
        if self.both_submitted:
            return RoundPhase.BOTH_SUBMITTED
        if self.submitted_self or self.submitted_peer:
            return RoundPhase.ONE_SUBMITTED
        return RoundPhase.OPEN

    def has_submitted(self, side: Side) -> bool:
        return self.submitted_self if side == Side.SELF else self.submitted_peer

    def mark_submitted(self, side: Side) -> bool:
        """
        Record a submission. Returns True only if the flag changed.
        Flags are monotonic; a repeated mark is a no-op.
        """
        if self.has_submitted(side):
            return False
        if side == Side.SELF:
            self.submitted_self = True
        else:
            self.submitted_peer = True
        return True

    def try_latch_reveal(self) -> bool:
        """
        Check-and-set the reveal latch.

        Returns True for exactly one caller once both sides have submitted;
        every later call returns False.
        """
        if not self.both_submitted or self.reveal_latched:
            return False
        self.reveal_latched = True
        return True

    def mark_revealed(self) -> None:
        if not self.reveal_latched:
            raise RoundOrderError(f"Round {self.index} revealed without a latched reveal")
        self.revealed = True

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "phase": self.phase.value,
            "submitted_self": self.submitted_self,
            "submitted_peer": self.submitted_peer,
            "revealed": self.revealed
        }


class RoundTracker:
    """
    Ordered rounds of one match with an explicit current-round pointer.

    The pointer only moves inside advance(), and only once the current round
    is revealed.
    """

    def __init__(self, max_rounds: int = MAX_ROUNDS):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.max_rounds = max_rounds
        self.rounds: List[RoundState] = [RoundState(index=1)]

    @property
    def current_index(self) -> int:
        return self.rounds[-1].index

    @property
    def current(self) -> RoundState:
        return self.rounds[-1]

    @property
    def is_last_round(self) -> bool:
        return self.current_index >= self.max_rounds

    def get(self, index: int) -> RoundState:
        if index < 1 or index > len(self.rounds):
            raise KeyError(f"Round {index} has not been opened")
        return self.rounds[index - 1]

    def record_submission(self, side: Side) -> bool:
        """Mark a submission on the current round."""
        return self.current.mark_submitted(side)

    def try_begin_reveal(self) -> bool:
        """Latch the reveal of the current round if both sides have submitted."""
        return self.current.try_latch_reveal()

    def complete_reveal(self) -> RoundState:
        round_state = self.current
        round_state.mark_revealed()
        return round_state

    def advance(self) -> RoundState:
        """Open the next round. Requires the current round to be revealed."""
        if not self.current.revealed:
            raise RoundOrderError(
                f"Cannot open round {self.current_index + 1} before round {self.current_index} is revealed"
            )
        if self.is_last_round:
            raise RoundOrderError(f"No round after {self.max_rounds}")
        next_round = RoundState(index=self.current_index + 1)
        self.rounds.append(next_round)
        return next_round

    def revealed_count(self) -> int:
        return sum(1 for round_state in self.rounds if round_state.revealed)

    def to_list(self) -> List[Dict]:
        return [round_state.to_dict() for round_state in self.rounds]
