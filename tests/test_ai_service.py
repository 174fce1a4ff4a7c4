import random
import unittest

from wordle_duel.models.game import EventType, GuessRecord, LetterStatus, MatchOutcome
from wordle_duel.services.ai_service import AIOpponent, ConstraintFilter
from wordle_duel.services.duel_coordinator import DuelCoordinator
from wordle_duel.services.evaluation import evaluate_guess

from tests.support import ANSWERS, ManualScheduler, make_dictionary

WORDS = ANSWERS + ["SLANT", "PLATE", "CRATE", "GRATE", "TRACE", "BLAST", "STALE", "LEAST"]


class TestConstraintFilter(unittest.TestCase):
    def test_candidates_shrink_and_keep_secret(self):
        for seed in range(10):
            rng = random.Random(seed)
            secret = rng.choice(WORDS)
            constraint_filter = ConstraintFilter(WORDS, rng=rng)
            previous = len(constraint_filter.candidates)
            for _ in range(len(WORDS)):
                guess = constraint_filter.next_guess()
                constraint_filter.observe(guess, evaluate_guess(secret, guess))
                self.assertIn(secret, constraint_filter.candidates)
                self.assertLessEqual(len(constraint_filter.candidates), previous)
                previous = len(constraint_filter.candidates)
                if guess == secret:
                    break
            self.assertEqual(constraint_filter.candidates, [secret])

    def test_filter_matches_verdict_exactly(self):
        constraint_filter = ConstraintFilter(["CRATE", "GRATE", "TRACE", "SLATE"])
        constraint_filter.observe("GRATE", evaluate_guess("CRATE", "GRATE"))
        self.assertEqual(constraint_filter.candidates, ["CRATE"])

    def test_empty_candidate_set_resets_to_dictionary(self):
        constraint_filter = ConstraintFilter(["CRANE", "SLATE"])
        constraint_filter.observe("CRANE", (LetterStatus.CORRECT,) * 4 + (LetterStatus.ABSENT,))
        self.assertEqual(constraint_filter.candidates, ["CRANE", "SLATE"])

    def test_sync_only_observes_new_entries(self):
        constraint_filter = ConstraintFilter(["CRATE", "GRATE", "TRACE", "SLATE"])
        history = [GuessRecord("SLATE", evaluate_guess("CRATE", "SLATE"))]
        constraint_filter.sync(history)
        after_first = list(constraint_filter.candidates)
        constraint_filter.sync(history)
        self.assertEqual(constraint_filter.candidates, after_first)
        self.assertNotIn("SLATE", after_first)

    def test_shorter_history_resets(self):
        constraint_filter = ConstraintFilter(["CRATE", "GRATE", "TRACE", "SLATE"])
        constraint_filter.sync([GuessRecord("SLATE", evaluate_guess("CRATE", "SLATE"))])
        constraint_filter.sync([])
        self.assertEqual(len(constraint_filter.candidates), 4)


class TestAIOpponent(unittest.TestCase):
    def setUp(self):
        self.scheduler = ManualScheduler()
        self.coordinator = DuelCoordinator(make_dictionary(), match_id="ai")
        self.ai = AIOpponent(self.coordinator, ANSWERS, scheduler=self.scheduler,
                             min_delay=3, max_delay=10, rng=random.Random(3))
        self.events = []
        self.coordinator.add_listener(self.events.append)

    def test_schedules_guess_with_delay_on_round_open(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        self.assertEqual(len(self.scheduler.pending), 1)
        self.assertTrue(3 <= self.scheduler.pending[0].delay <= 10)
        self.assertEqual(self.ai.pending_round, 1)

    def test_guess_is_submitted_as_opponent(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        self.scheduler.run_pending()
        self.assertEqual(len(self.coordinator.state.peer_history), 1)
        self.assertTrue(self.coordinator.state.rounds.current.submitted_peer)
        self.assertIn(self.coordinator.state.peer_history[0].guess, ANSWERS)

    def test_next_round_reschedules(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        self.scheduler.run_pending()
        self.coordinator.submit_guess("CRANE")
        if self.coordinator.state.outcome.is_final:
            self.skipTest("AI ended the match in round one")
        self.assertEqual(self.coordinator.state.current_round, 2)
        self.assertEqual(self.ai.pending_round, 2)
        self.assertEqual(len(self.scheduler.pending), 1)

    def test_pending_guess_cancelled_on_game_over(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        self.scheduler.run_pending()
        self.coordinator.submit_guess("ALLOY")
        self.assertTrue(self.coordinator.state.outcome in (MatchOutcome.PLAYER_WIN, MatchOutcome.BOTH_WON))
        self.assertEqual(self.scheduler.pending, [])
        self.assertIsNone(self.ai.pending_round)

    def test_restart_cancels_stale_guess(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        stale = self.scheduler.pending[0]
        self.coordinator.start_match("CRANE", "CRANE")
        self.assertTrue(stale.cancelled)
        self.assertEqual(len(self.scheduler.pending), 1)

    def test_guess_for_old_round_is_dropped(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        task = self.scheduler.pending[0]
        self.ai.cancel()
        task.callback()
        self.assertEqual(self.coordinator.state.peer_history, [])

    def test_ai_plays_full_match(self):
        self.coordinator.start_match("ALLOY", "ALLOY")
        own = ["CRANE", "SLATE", "BRICK", "PLANT", "GHOST", "MOUSE"]
        for guess in own:
            if self.coordinator.state.outcome.is_final:
                break
            self.scheduler.run_pending()
            if self.coordinator.state.rounds.current.submitted_self:
                continue
            self.coordinator.submit_guess(guess)
        self.assertTrue(self.coordinator.state.outcome.is_final)
        self.assertEqual(len([e for e in self.events if e.event_type == EventType.GAME_OVER]), 1)


if __name__ == '__main__':
    unittest.main()
