import unittest

from wordle_duel import create_app
from wordle_duel.config import TestingConfig
from wordle_duel.services.duel_service import initialize_duel_service

from tests.support import ManualScheduler


class TestAppSurface(unittest.TestCase):
    def setUp(self):
        self.scheduler = ManualScheduler()
        self.service = initialize_duel_service(TestingConfig, scheduler=self.scheduler)
        self.app, self.socketio = create_app(TestingConfig)
        self.http = self.app.test_client()
        self.client = self.socketio.test_client(self.app)

    def tearDown(self):
        if self.client.is_connected():
            self.client.disconnect()

    def received(self, name):
        return [packet['args'][0] for packet in self.client.get_received() if packet['name'] == name]

    def test_health(self):
        response = self.http.get('/api/health')
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['status'], 'healthy')
        self.assertEqual(body['active_duels'], 0)
        self.assertEqual(len(body['lobby']), 3)

    def test_unknown_duel_state(self):
        response = self.http.get('/api/duel/missing/state')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])

    def test_start_ai_duel_and_fetch_state(self):
        self.client.emit('start_ai_duel')
        started = self.received('duel_started')
        self.assertEqual(len(started), 1)
        self.assertEqual(started[0]['mode'], 'ai')

        response = self.http.get(f"/api/duel/{started[0]['match_id']}/state")
        state = response.get_json()['state']
        self.assertEqual(state['current_round'], 1)
        self.assertIsNone(state['answer'])

    def test_submit_guess_without_duel(self):
        self.client.emit('submit_guess', {'guess': 'CRANE'})
        results = self.received('guess_result')
        self.assertFalse(results[0]['success'])
        self.assertEqual(results[0]['result']['reason'], 'match_not_active')

    def test_disconnect_ends_session(self):
        self.client.emit('start_ai_duel')
        self.assertEqual(len(self.service.sessions), 1)
        self.client.disconnect()
        self.assertEqual(self.service.sessions, {})
        self.assertEqual(self.scheduler.pending, [])


if __name__ == '__main__':
    unittest.main()
