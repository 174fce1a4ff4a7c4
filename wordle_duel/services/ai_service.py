"""
AI Opponent Service

A fair AI opponent: it only ever sees feedback on its own guesses, narrows a
candidate list to the words consistent with that feedback, and guesses one of
them at random after a human-like delay.
"""

import random
import threading
from typing import Iterable, List, Optional, Sequence

from ..config import Config
from ..config.game_settings import ANSWER_WORDS
from ..models.game import DuelEvent, EventType, GuessRecord, Verdict
from ..utils.game_logger import game_logger
from ..utils.scheduler import ScheduledTask, Scheduler, ThreadingScheduler
from .evaluation import evaluate_guess, normalize_word


class ConstraintFilter:
    """
    Candidate words consistent with every verdict observed so far.

    A word stays a candidate only if, treated as the secret, it would reproduce
    the exact verdict the AI received for its guess.
    """

    def __init__(self, dictionary: Sequence[str] = None, rng: Optional[random.Random] = None):
        source = ANSWER_WORDS if dictionary is None else dictionary
        self.dictionary: List[str] = list(dict.fromkeys(normalize_word(word) for word in source))
        if not self.dictionary:
            raise ValueError("AI dictionary cannot be empty")
        self.candidates: List[str] = list(self.dictionary)
        self._observed = 0
        self._rng = rng or random.Random()

    def reset(self) -> None:
        self.candidates = list(self.dictionary)
        self._observed = 0

    def observe(self, guess: str, verdict: Verdict) -> None:
        """Narrow the candidates with one of the AI's own guess/verdict pairs."""
        guess = normalize_word(guess)
        verdict = tuple(verdict)
        self.candidates = [word for word in self.candidates if evaluate_guess(word, guess) == verdict]
        self._observed += 1

        if not self.candidates:
            # Only reachable with a dictionary that does not contain the secret
            game_logger.logger.warning(f"AI candidate list emptied after '{guess}', resetting to full dictionary")
            self.candidates = list(self.dictionary)

    def sync(self, history: Iterable[GuessRecord]) -> None:
        """Observe every history entry not seen yet."""
        history = list(history)
        if len(history) < self._observed:
            self.reset()
        for record in history[self._observed:]:
            self.observe(record.guess, record.verdict)

    def next_guess(self) -> str:
        if not self.candidates:
            self.candidates = list(self.dictionary)
        return self._rng.choice(self.candidates)


class AIOpponent:
    """
    Drives a DuelCoordinator's local opponent side.

    On every opened round a guess is scheduled after a random delay; the pending
    guess is cancelled when the next round opens or the match ends, and a guess
    that fires for a round that is no longer current is dropped.
    """

    def __init__(self,
                 coordinator,
                 dictionary: Sequence[str] = None,
                 scheduler: Optional[Scheduler] = None,
                 min_delay: float = None,
                 max_delay: float = None,
                 rng: Optional[random.Random] = None):
        self.coordinator = coordinator
        self._rng = rng or random.Random()
        self.filter = ConstraintFilter(dictionary, rng=self._rng)
        self.scheduler = scheduler or ThreadingScheduler()
        self.min_delay = Config.AI_MIN_DELAY_SECONDS if min_delay is None else min_delay
        self.max_delay = Config.AI_MAX_DELAY_SECONDS if max_delay is None else max_delay
        self._lock = threading.Lock()
        self._pending: Optional[ScheduledTask] = None
        self._pending_round: Optional[int] = None

        coordinator.add_listener(self.handle_event)

    def get_delay(self) -> float:
        return self._rng.uniform(self.min_delay, self.max_delay)

    def handle_event(self, event: DuelEvent) -> None:
        if event.event_type == EventType.ROUND_OPENED:
            if event.round_index == 1:
                self.filter.reset()
            self._schedule(event.round_index)
        elif event.event_type == EventType.GAME_OVER:
            self.cancel()

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = None
            self._pending_round = None

    @property
    def pending_round(self) -> Optional[int]:
        return self._pending_round

    def _schedule(self, round_index: int) -> None:
        self.cancel()
        with self._lock:
            self._pending_round = round_index
            self._pending = self.scheduler.schedule(self.get_delay(), lambda: self._play(round_index))

    def _play(self, round_index: int) -> None:
        with self._lock:
            if self._pending_round != round_index:
                return
            self._pending = None
            self._pending_round = None

        state = self.coordinator.state
        if not state.is_active or state.current_round != round_index:
            return

        self.filter.sync(self.coordinator.opponent_history())
        guess = self.filter.next_guess()
        result = self.coordinator.submit_opponent_guess(guess)
        if not result.accepted:
            game_logger.logger.warning(
                f"AI guess '{guess}' rejected in match {self.coordinator.match_id}: {result.message}"
            )
