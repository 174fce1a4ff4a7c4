import unittest
from unittest.mock import MagicMock

from wordle_duel.models.game import EventType, MatchOutcome, RejectReason
from wordle_duel.services.duel_service import DuelService
from wordle_duel.services.lobby_service import LobbyService
from wordle_duel.sync.memory import InMemoryRoomStore

from tests.support import ANSWERS, FakeStream, ManualScheduler, make_dictionary


class Collector:
    def __init__(self):
        self.emitted = []

    def __call__(self, name, data):
        self.emitted.append((name, data))

    def duel_events(self, event_type=None):
        events = [data for name, data in self.emitted if name == 'duel_event']
        if event_type is not None:
            events = [data for data in events if data['type'] == event_type.value]
        return events


class TestAIDuel(unittest.TestCase):
    def setUp(self):
        self.dictionary = make_dictionary()
        self.scheduler = ManualScheduler()
        self.service = DuelService(self.dictionary, LobbyService(self.dictionary),
                                   scheduler=self.scheduler, ai_min_delay=3, ai_max_delay=10)
        self.emit = Collector()

    def test_start_opens_round_one_and_schedules_ai(self):
        session = self.service.start_ai_duel("sid1", self.emit)
        self.assertEqual(session.mode, 'ai')
        self.assertTrue(session.coordinator.state.started)
        self.assertEqual(len(self.emit.duel_events(EventType.ROUND_OPENED)), 1)
        self.assertEqual(len(self.scheduler.pending), 1)

    def test_both_sides_share_the_secret(self):
        state = self.service.start_ai_duel("sid1", self.emit).coordinator.state
        self.assertEqual(state.secret_self, state.secret_peer)

    def test_full_match_ends_with_game_over(self):
        session = self.service.start_ai_duel("sid1", self.emit)
        for word in ANSWERS[:6]:
            if not session.coordinator.state.is_active:
                break
            self.assertTrue(self.service.submit_guess("sid1", word).accepted)
            self.scheduler.run_pending()

        self.assertTrue(session.coordinator.state.outcome.is_final)
        self.assertEqual(len(self.emit.duel_events(EventType.GAME_OVER)), 1)
        self.assertEqual(self.scheduler.pending, [])

    def test_restart_replaces_session_and_cancels_ai(self):
        first = self.service.start_ai_duel("sid1", self.emit)
        stale_task = self.scheduler.pending[0]
        second = self.service.start_ai_duel("sid1", self.emit)
        self.assertTrue(stale_task.cancelled)
        self.assertIs(self.service.get_session("sid1"), second)
        self.assertNotEqual(first.match_id, second.match_id)

    def test_submit_without_session_is_rejected(self):
        result = self.service.submit_guess("nobody", "CRANE")
        self.assertFalse(result.accepted)
        self.assertEqual(result.reason, RejectReason.MATCH_NOT_ACTIVE)

    def test_end_session(self):
        session = self.service.start_ai_duel("sid1", self.emit)
        self.assertIs(self.service.find_by_match(session.match_id), session)
        self.assertTrue(self.service.end_session("sid1"))
        self.assertFalse(self.service.end_session("sid1"))
        self.assertIsNone(self.service.get_state("sid1"))
        self.assertEqual(self.scheduler.pending, [])


class TestRoomDuel(unittest.TestCase):
    def setUp(self):
        self.dictionary = make_dictionary()
        self.store = InMemoryRoomStore()
        self.service = DuelService(self.dictionary, LobbyService(self.dictionary),
                                   store=self.store, scheduler=ManualScheduler())
        self.ann = Collector()
        self.bob = Collector()

    def join_both(self):
        first = self.service.join_room_duel("a", "Ann", 1, self.ann)
        second = self.service.join_room_duel("b", "Bob", 1, self.bob)
        return first, second

    def test_first_player_waits(self):
        result = self.service.join_room_duel("a", "Ann", 1, self.ann)
        self.assertTrue(result['success'])
        self.assertNotIn('secret', result)
        self.assertEqual(result['match_id'], 'ROOM1')
        self.assertFalse(self.service.get_session("a").coordinator.state.started)

    def test_second_player_starts_both(self):
        first, second = self.join_both()
        self.assertTrue(second['room_full'])
        ann_state = self.service.get_session("a").coordinator.state
        bob_state = self.service.get_session("b").coordinator.state
        self.assertTrue(ann_state.started)
        self.assertTrue(bob_state.started)
        self.assertEqual(ann_state.secret_self, bob_state.secret_self)
        self.assertEqual(ann_state.secret_self, self.store.get_room("ROOM1")["secret"])

    def test_round_reveals_on_both_sides(self):
        self.join_both()
        self.service.submit_guess("a", "CRANE")
        self.assertEqual(self.ann.duel_events(EventType.ROUND_REVEALED), [])
        self.assertEqual(len(self.bob.duel_events(EventType.OPPONENT_SUBMITTED)), 1)

        self.service.submit_guess("b", "SLATE")
        self.assertEqual(len(self.ann.duel_events(EventType.ROUND_REVEALED)), 1)
        self.assertEqual(len(self.bob.duel_events(EventType.ROUND_REVEALED)), 1)

    def test_full_room_rejected(self):
        self.join_both()
        result = self.service.join_room_duel("c", "Cat", 1, Collector())
        self.assertFalse(result['success'])
        self.assertEqual(result['error'], 'Room is full')

    def test_name_taken_rejected(self):
        self.service.join_room_duel("a", "Ann", 1, self.ann)
        result = self.service.join_room_duel("b", "Ann", 1, self.bob)
        self.assertFalse(result['success'])
        self.assertIsNone(self.service.get_session("b"))

    def test_roster_updates_are_emitted(self):
        self.join_both()
        rosters = [data['players'] for name, data in self.ann.emitted if name == 'room_roster']
        self.assertEqual([len(players) for players in rosters], [1, 2])

    def test_leaving_empties_room(self):
        self.join_both()
        self.service.end_session("a")
        self.assertEqual(list(self.store.get_room("ROOM1")["players"]), ["b"])
        self.service.end_session("b")
        self.assertIsNone(self.store.get_room("ROOM1"))
        self.assertEqual(self.service.lobby.rooms[1]['players'], [])

    def wrong_words(self, count=2):
        secret = self.store.get_room("ROOM1")["secret"]
        return [word for word in ANSWERS if word != secret][:count]

    def statuses(self, collector):
        return [data['game_state']['status'] for name, data in collector.emitted if name == 'room_state']

    def test_game_status_is_emitted(self):
        self.join_both()
        self.assertEqual(self.store.get_room("ROOM1")["game_state"]["status"], "active")
        self.assertEqual(self.statuses(self.ann)[-1], "active")
        self.assertEqual(self.statuses(self.bob)[-1], "active")

    def test_opponent_leaving_ends_match_and_resets_room(self):
        self.join_both()
        ann_word, bob_word = self.wrong_words()
        self.service.submit_guess("a", ann_word)
        self.service.submit_guess("b", bob_word)
        self.assertEqual(len(self.ann.duel_events(EventType.ROUND_REVEALED)), 1)

        self.service.end_session("b")

        ann_state = self.service.get_session("a").coordinator.state
        self.assertEqual(ann_state.outcome, MatchOutcome.OPPONENT_LEFT)
        game_over = self.ann.duel_events(EventType.GAME_OVER)
        self.assertEqual(len(game_over), 1)
        self.assertEqual(game_over[0]['outcome'], 'opponent_left')
        self.assertEqual(self.statuses(self.ann)[-2:], ["finished", "waiting"])

        room = self.store.get_room("ROOM1")
        self.assertEqual(room["players"], {"a": {"name": "Ann", "history": [], "submitted_rounds": []}})
        self.assertEqual(room["game_state"], {"status": "waiting", "current_round": 1, "revealed_rounds": []})
        self.assertEqual(room["secret"], self.service.lobby.rooms[1]['secret'])

    def test_new_opponent_gets_a_fresh_match(self):
        self.join_both()
        ann_word, bob_word = self.wrong_words()
        self.service.submit_guess("a", ann_word)
        self.service.submit_guess("b", bob_word)
        self.service.end_session("b")

        cat = Collector()
        result = self.service.join_room_duel("c", "Cat", 1, cat)
        self.assertTrue(result['success'])

        ann_state = self.service.get_session("a").coordinator.state
        cat_state = self.service.get_session("c").coordinator.state
        self.assertEqual(ann_state.peer_id, "c")
        self.assertEqual(cat_state.peer_id, "a")
        self.assertEqual(ann_state.outcome, MatchOutcome.ONGOING)
        self.assertEqual(ann_state.current_round, 1)
        self.assertEqual(ann_state.peer_history, [])
        self.assertEqual(cat_state.peer_history, [])
        self.assertEqual(ann_state.secret_self, cat_state.secret_self)
        self.assertEqual(ann_state.secret_self, self.store.get_room("ROOM1")["secret"])

        ann_word, cat_word = self.wrong_words()
        self.assertTrue(self.service.submit_guess("a", ann_word).accepted)
        self.assertTrue(self.service.submit_guess("c", cat_word).accepted)

        self.assertEqual(ann_state.rounds.revealed_count(), 1)
        self.assertEqual(cat_state.rounds.revealed_count(), 1)
        self.assertEqual([r.guess for r in ann_state.visible_peer_history()], [cat_word])
        self.assertEqual([r.guess for r in cat_state.visible_peer_history()], [ann_word])
        self.assertEqual(len(cat.duel_events(EventType.ROUND_REVEALED)), 1)


class TestMongoRoomDuel(unittest.TestCase):
    def setUp(self):
        self.dictionary = make_dictionary()
        self.collection = MagicMock()
        self.collection.find_one.return_value = None
        self.collection.watch.side_effect = lambda *args, **kwargs: FakeStream()
        self.service = DuelService(self.dictionary, LobbyService(self.dictionary),
                                   rooms_collection=self.collection, scheduler=ManualScheduler())

    def secret_writes(self):
        updates = [c[0][1] for c in self.collection.update_one.call_args_list]
        return [update["$set"]["secret"] for update in updates if "secret" in update.get("$set", {})]

    def test_first_player_writes_lobby_secret(self):
        self.assertTrue(self.service.join_room_duel("a", "Ann", 1, Collector())['success'])
        self.assertEqual(self.secret_writes(), [self.service.lobby.rooms[1]['secret']])
        self.service.end_session("a")

        self.assertTrue(self.service.join_room_duel("b", "Bob", 1, Collector())['success'])
        writes = self.secret_writes()
        self.assertEqual(len(writes), 2)
        self.assertEqual(writes[-1], self.service.lobby.rooms[1]['secret'])
        for c in self.collection.update_one.call_args_list:
            self.assertNotIn("$setOnInsert", c[0][1])
        self.service.end_session("b")


if __name__ == '__main__':
    unittest.main()
