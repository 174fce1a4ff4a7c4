"""
Duel Coordinator

Orchestrates one duel from the point of view of a single participant: owns both
guess histories and the round sequence, drives the round state machine, decides
the outcome at every round boundary and emits the outbound event stream.

The opponent is either local (an AI feeding submit_opponent_guess) or remote
(snapshots arriving through a SharedStateChannel). State transitions happen
under a lock; channel writes and listener callbacks run after the lock is
released, so a slow or failing channel never blocks local play.
"""

import threading
import uuid
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config.game_settings import MAX_ROUNDS, WORD_LENGTH
from ..models.errors import ChannelWriteFailure, DuelError
from ..models.game import (
    DuelEvent, EventType, GuessRecord, MatchOutcome, PeerSnapshot,
    RejectReason, SubmitResult, verdict_to_list
)
from ..utils.game_logger import game_logger
from .dictionary_service import WordDictionary
from .evaluation import KeyboardTracker, evaluate_guess, normalize_word
from .round_state import RoundTracker, Side

EventListener = Callable[[DuelEvent], None]


def round_outcome(self_record: GuessRecord, peer_record: GuessRecord,
                  round_index: int, max_rounds: int = MAX_ROUNDS) -> MatchOutcome:
    """
    Outcome of a revealed round.

    Win checks run before the collision check, so identical winning words are
    BOTH_WON and an identical word never cancels a win.
    """
    self_won = self_record.is_win
    peer_won = peer_record.is_win
    if self_won and peer_won:
        return MatchOutcome.BOTH_WON
    if self_won:
        return MatchOutcome.PLAYER_WIN
    if peer_won:
        return MatchOutcome.OPPONENT_WIN
    if self_record.guess == peer_record.guess:
        return MatchOutcome.COLLISION
    if round_index >= max_rounds:
        return MatchOutcome.EXHAUSTED
    return MatchOutcome.ONGOING


@dataclass
class MatchState:
    """All state of one match, owned and mutated only by its DuelCoordinator."""
    match_id: str
    player_id: str
    max_rounds: int = MAX_ROUNDS
    peer_id: Optional[str] = None
    secret_self: Optional[str] = None
    secret_peer: Optional[str] = None
    started: bool = False
    outcome: MatchOutcome = MatchOutcome.ONGOING
    self_history: List[GuessRecord] = field(default_factory=list)
    peer_history: List[GuessRecord] = field(default_factory=list)
    rounds: Optional[RoundTracker] = None
    keyboard: KeyboardTracker = field(default_factory=KeyboardTracker)

    def __post_init__(self):
        if self.rounds is None:
            self.rounds = RoundTracker(self.max_rounds)

    @property
    def current_round(self) -> int:
        return self.rounds.current_index

    @property
    def is_active(self) -> bool:
        return self.started and not self.outcome.is_final

    def visible_peer_history(self) -> List[GuessRecord]:
        """Opponent rows for revealed rounds only; the in-flight guess stays hidden."""
        return self.peer_history[:self.rounds.revealed_count()]

    def to_dict(self) -> Dict[str, Any]:
        """Projection handed to the presentation layer."""
        current = self.rounds.current
        return {
            "match_id": self.match_id,
            "player_id": self.player_id,
            "started": self.started,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "outcome": self.outcome.value,
            "game_over": self.outcome.is_final,
            "player": {
                "history": [record.to_dict() for record in self.self_history],
                "submitted": current.submitted_self,
                "letter_status": self.keyboard.to_dict()
            },
            "opponent": {
                "id": self.peer_id,
                "history": [record.to_dict() for record in self.visible_peer_history()],
                "submitted": current.submitted_peer
            },
            "rounds": self.rounds.to_list(),
            "answer": self.secret_self if self.outcome.is_final else None
        }


class DuelCoordinator:
    """
    Single writer for a match's histories and rounds.

    Public operations:
    - start_match(secret_self, secret_peer=None, peer_id=None)
    - submit_guess(word) for the local player
    - submit_opponent_guess(word) for a local (AI) opponent
    - on_peer_update(snapshot) for a remote opponent, registered on the channel
    - opponent_left() when the remote opponent leaves the room

    A remote match is paired with one opponent id. Snapshots are kept per
    player id, and snapshots from anyone other than the paired opponent never
    touch the match.
    """

    def __init__(self,
                 dictionary: WordDictionary,
                 channel=None,
                 match_id: Optional[str] = None,
                 player_id: Optional[str] = None,
                 max_rounds: int = MAX_ROUNDS):
        self.dictionary = dictionary
        self.channel = channel
        self.match_id = match_id or str(uuid.uuid4())
        self.player_id = player_id or (channel.player_id if channel is not None else "player")
        self.max_rounds = max_rounds
        self._lock = threading.RLock()
        self._listeners: List[EventListener] = []
        self._snapshots: Dict[str, PeerSnapshot] = {}
        self._state = MatchState(match_id=self.match_id, player_id=self.player_id, max_rounds=max_rounds)

        if channel is not None:
            channel.on_opponent_state_changed(self.on_peer_update)

    @property
    def is_remote(self) -> bool:
        return self.channel is not None

    @property
    def state(self) -> MatchState:
        return self._state

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self._state.to_dict()

    def opponent_history(self) -> Tuple[GuessRecord, ...]:
        """Copy of the opponent's history (a local AI reads its own feedback here)."""
        with self._lock:
            return tuple(self._state.peer_history)

    def start_match(self, secret_self: str, secret_peer: Optional[str] = None,
                    peer_id: Optional[str] = None) -> MatchState:
        """
        Reset both histories and open round 1.

        Args:
            secret_self: Word the local player must guess
            secret_peer: Word a local opponent must guess; None for remote play
            peer_id: Remote opponent to pair with; None pairs with the first
                opponent whose snapshot arrives
        """
        with self._lock:
            if self._state.started:
                # A restart only keeps what the new opponent has already shared
                self._snapshots = {pid: s for pid, s in self._snapshots.items() if pid == peer_id}
            if peer_id is None and self.is_remote and len(self._snapshots) == 1:
                peer_id = next(iter(self._snapshots))
            self._state = MatchState(
                match_id=self.match_id,
                player_id=self.player_id,
                max_rounds=self.max_rounds,
                peer_id=peer_id,
                secret_self=normalize_word(secret_self),
                secret_peer=normalize_word(secret_peer) if secret_peer else None,
                started=True
            )
            events = [self._event(EventType.ROUND_OPENED, 1)]
            pending = self._peer_snapshot()
            if pending is not None:
                self._state.peer_history = list(pending.history)
                self._apply_peer_submission(events)
            state = self._state

        game_logger.log_game_event(self.match_id, 'match_started', self.player_id,
                                   remote=self.is_remote, max_rounds=self.max_rounds, peer_id=peer_id)
        self._flush(events, [])
        return state

    def submit_guess(self, word: str) -> SubmitResult:
        """Submit the local player's guess for the current round."""
        with self._lock:
            rejection = self._validate(word, Side.SELF)
            if rejection is not None:
                return rejection

            state = self._state
            guess = normalize_word(word)
            verdict = evaluate_guess(state.secret_self, guess)
            state.self_history.append(GuessRecord(guess=guess, verdict=verdict))
            state.keyboard.record(guess, verdict)
            state.rounds.record_submission(Side.SELF)

            events: List[DuelEvent] = []
            effects: List[Callable[[], None]] = []
            if self.is_remote:
                submitted = [round_state.index for round_state in state.rounds.rounds if round_state.submitted_self]
                effects.append(partial(self._write_player_state, tuple(state.self_history), submitted))
            self._advance(events, effects)

        self._flush(events, effects)
        return SubmitResult(accepted=True, verdict=verdict)

    def submit_opponent_guess(self, word: str) -> SubmitResult:
        """Submit the local opponent's guess, evaluated against secret_peer."""
        with self._lock:
            if self.is_remote or self._state.secret_peer is None:
                raise DuelError("Opponent guesses for a remote match arrive through the shared channel")
            rejection = self._validate(word, Side.PEER)
            if rejection is not None:
                return rejection

            state = self._state
            guess = normalize_word(word)
            verdict = evaluate_guess(state.secret_peer, guess)
            state.peer_history.append(GuessRecord(guess=guess, verdict=verdict))
            state.rounds.record_submission(Side.PEER)

            events = [self._event(EventType.OPPONENT_SUBMITTED, state.current_round)]
            effects: List[Callable[[], None]] = []
            self._advance(events, effects)

        self._flush(events, effects)
        return SubmitResult(accepted=True, verdict=verdict)

    def on_peer_update(self, snapshot: PeerSnapshot) -> None:
        """
        Handle a channel notification carrying the opponent's latest state.

        The snapshot replaces the mirrored opponent history wholesale. A snapshot
        with a shorter history than the last one from the same player is stale
        and ignored. Snapshots from a player other than the paired opponent are
        kept for a later pairing but never applied.
        """
        with self._lock:
            latest = self._snapshots.get(snapshot.player_id)
            if latest is not None and len(snapshot.history) < len(latest.history):
                game_logger.log_sync_event(self.match_id, 'stale_snapshot_ignored', self.player_id,
                                           peer_id=snapshot.player_id,
                                           received=len(snapshot.history), mirrored=len(latest.history))
                return
            self._snapshots[snapshot.player_id] = snapshot

            state = self._state
            if not state.started or state.outcome.is_final:
                return
            if state.peer_id is None:
                state.peer_id = snapshot.player_id
            elif snapshot.player_id != state.peer_id:
                game_logger.log_sync_event(self.match_id, 'unpaired_snapshot_ignored', self.player_id,
                                           peer_id=snapshot.player_id, paired_with=state.peer_id)
                return
            state.peer_history = list(snapshot.history)

            events: List[DuelEvent] = []
            effects: List[Callable[[], None]] = []
            self._apply_peer_submission(events)
            self._advance(events, effects)

        self._flush(events, effects)

    def opponent_left(self) -> bool:
        """
        End an active match because the paired opponent left the room.

        The opponent's stored snapshot is dropped so a later pairing, even with
        the same player id, starts from an empty mirror.

        Returns:
            True if an active match was ended
        """
        with self._lock:
            state = self._state
            if state.peer_id is not None:
                self._snapshots.pop(state.peer_id, None)
            if not state.is_active:
                return False
            state.outcome = MatchOutcome.OPPONENT_LEFT
            events = [self._event(EventType.GAME_OVER, state.current_round, {
                "outcome": state.outcome.value,
                "draw": False,
                "answer": state.secret_self
            })]

        self._flush(events, [])
        return True

    def _peer_snapshot(self) -> Optional[PeerSnapshot]:
        peer_id = self._state.peer_id
        return self._snapshots.get(peer_id) if peer_id is not None else None

    def _validate(self, word: str, side: Side) -> Optional[SubmitResult]:
        state = self._state
        if not state.is_active:
            return SubmitResult.rejected(RejectReason.MATCH_NOT_ACTIVE, "Match is not active")

        guess = normalize_word(word)
        if len(guess) != WORD_LENGTH:
            return SubmitResult.rejected(RejectReason.INVALID_LENGTH, f"Guess must be exactly {WORD_LENGTH} letters")

        if not self.dictionary.is_accepted_guess(guess):
            return SubmitResult.rejected(RejectReason.NOT_IN_DICTIONARY, "Word not in word list")

        if state.rounds.current.has_submitted(side):
            return SubmitResult.rejected(RejectReason.DUPLICATE_SUBMISSION, "Already submitted this round")

        return None

    def _apply_peer_submission(self, events: List[DuelEvent]) -> None:
        """Raise the opponent flag for the current round if the latest snapshot covers it."""
        snapshot = self._peer_snapshot()
        index = self._state.current_round
        if snapshot is not None and snapshot.has_submitted(index):
            if self._state.rounds.record_submission(Side.PEER):
                events.append(self._event(EventType.OPPONENT_SUBMITTED, index))

    def _advance(self, events: List[DuelEvent], effects: List[Callable[[], None]]) -> None:
        # The latch is set here, under the lock, before any channel write is queued
        if self._state.rounds.try_begin_reveal():
            self._resolve_round(events, effects)

    def _resolve_round(self, events: List[DuelEvent], effects: List[Callable[[], None]]) -> None:
        state = self._state
        index = state.current_round
        self_record = state.self_history[index - 1]
        peer_record = state.peer_history[index - 1]

        outcome = round_outcome(self_record, peer_record, index, state.max_rounds)
        state.rounds.complete_reveal()
        state.outcome = outcome

        events.append(self._event(EventType.ROUND_REVEALED, index, {
            "player": {"guess": self_record.guess, "verdict": verdict_to_list(self_record.verdict)},
            "opponent": {"guess": peer_record.guess, "verdict": verdict_to_list(peer_record.verdict)},
            "outcome": outcome.value
        }))
        if self.is_remote:
            effects.append(partial(self._mark_round_revealed, index))

        if outcome.is_final:
            events.append(self._event(EventType.GAME_OVER, index, {
                "outcome": outcome.value,
                "draw": outcome.is_draw,
                "answer": state.secret_self
            }))
            return

        state.rounds.advance()
        events.append(self._event(EventType.ROUND_OPENED, state.current_round))
        # A fast opponent may already have submitted the round that just opened
        self._apply_peer_submission(events)

    def _event(self, event_type: EventType, round_index: int, payload: Optional[Dict[str, Any]] = None) -> DuelEvent:
        return DuelEvent(event_type=event_type, match_id=self.match_id, round_index=round_index,
                         payload=payload or {})

    def _write_player_state(self, history: Tuple[GuessRecord, ...], submitted_rounds: List[int]) -> None:
        self.channel.write_player_state(history, submitted_rounds)
        game_logger.log_sync_event(self.match_id, 'write_player_state', self.player_id,
                                   guesses=len(history), submitted_rounds=submitted_rounds)

    def _mark_round_revealed(self, round_index: int) -> None:
        self.channel.mark_round_revealed(round_index)
        game_logger.log_sync_event(self.match_id, 'mark_round_revealed', self.player_id, round=round_index)

    def _flush(self, events: List[DuelEvent], effects: List[Callable[[], None]]) -> None:
        """Run queued channel writes, then deliver events. Write failures never roll back state."""
        for effect in effects:
            try:
                effect()
            except ChannelWriteFailure as e:
                game_logger.log_sync_event(self.match_id, e.operation, self.player_id,
                                           success=False, error=str(e))
                events.append(self._event(EventType.SYNC_FAILED, self._state.current_round, {
                    "operation": e.operation,
                    "error": str(e)
                }))

        for event in events:
            if event.event_type in (EventType.ROUND_REVEALED, EventType.GAME_OVER):
                game_logger.log_game_event(self.match_id, event.event_type.value, self.player_id,
                                           round=event.round_index, outcome=event.payload.get("outcome"))
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    game_logger.log_error(e, f"listener:{event.event_type.value}", self.match_id, self.player_id)
