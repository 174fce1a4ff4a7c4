"""Shared fakes for the duel tests."""

from typing import Iterable, List, Sequence

from wordle_duel.models.errors import ChannelWriteFailure
from wordle_duel.models.game import GuessRecord
from wordle_duel.services.dictionary_service import WordDictionary
from wordle_duel.sync.base import SharedStateChannel
from wordle_duel.utils.scheduler import ScheduledTask, Scheduler

ANSWERS = ["ALLOY", "CRANE", "SLATE", "BRICK", "PLANT", "GHOST", "MOUSE", "TRAIN"]
EXTRA_GUESSES = ["LLAMA", "ADIEU", "AUDIO", "EERIE"]


def make_dictionary(seed: int = 7) -> WordDictionary:
    import random
    return WordDictionary(ANSWERS, EXTRA_GUESSES, rng=random.Random(seed))


class ManualTask(ScheduledTask):
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self):
        return self._cancelled


class ManualScheduler(Scheduler):
    """Scheduler whose tasks only run when the test says so."""

    def __init__(self):
        self.tasks: List[ManualTask] = []

    def schedule(self, delay, callback):
        task = ManualTask(delay, callback)
        self.tasks.append(task)
        return task

    @property
    def pending(self) -> List[ManualTask]:
        return [task for task in self.tasks if not task.cancelled]

    def run_pending(self) -> int:
        ran = 0
        for task in list(self.tasks):
            self.tasks.remove(task)
            if not task.cancelled:
                task.callback()
                ran += 1
        return ran


class RecordingChannel(SharedStateChannel):
    """Channel that records writes instead of sharing them."""

    def __init__(self, player_id: str = "p1", fail_writes: bool = False):
        super().__init__("TEST", player_id)
        self.fail_writes = fail_writes
        self.writes = []
        self.revealed = []
        self.calls = []

    def join(self, name: str) -> None:
        self.calls.append(("join", name))

    def leave(self) -> None:
        self.calls.append(("leave",))

    def write_player_state(self, history: Sequence[GuessRecord], submitted_rounds: Iterable[int]) -> None:
        self.calls.append(("write", len(history)))
        if self.fail_writes:
            raise ChannelWriteFailure("write_player_state", RuntimeError("offline"))
        self.writes.append((tuple(history), sorted(submitted_rounds)))

    def mark_round_revealed(self, round_index: int) -> None:
        self.calls.append(("revealed", round_index))
        self.revealed.append(round_index)

    def reset_room(self, secret: str) -> None:
        self.calls.append(("reset", secret))

    def set_game_status(self, status: str) -> None:
        self.calls.append(("status", status))


class FakeStream:
    """Change stream stand-in that yields the given changes, then goes dead."""

    def __init__(self, changes=()):
        self.changes = list(changes)
        self.alive = True
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def try_next(self):
        if self.changes:
            return self.changes.pop(0)
        self.alive = False
        return None

    def close(self):
        self.closed = True
