"""Tests for the romatype REST API."""

import unittest

from fastapi.testclient import TestClient

import server.app as server_app
from core.interfaces import WordStore
from core.models import AggregatedStats, GameScoreRecord, Settings, Word, WordStats


# ============================================================================
# Mock Implementations
# ============================================================================

class MockWordStore(WordStore):
    """In-memory store for testing."""

    def __init__(self):
        self.words = {}
        self.next_id = 1
        self.scores = []
        self.key_stats = AggregatedStats()
        self.settings = Settings()

    def list_words(self):
        return list(self.words.values())

    def get_word(self, word_id):
        return self.words.get(str(word_id))

    def add_word(self, text, reading, romaji):
        word = Word(str(self.next_id), text, reading, romaji, WordStats(created_at=1.0))
        self.words[word.id] = word
        self.next_id += 1
        return word

    def delete_word(self, word_id):
        return self.words.pop(str(word_id), None) is not None

    def save_word_stats(self, word_id, stats):
        if str(word_id) not in self.words:
            raise KeyError(word_id)
        self.words[str(word_id)] = self.words[str(word_id)].with_stats(stats)

    def list_recent_scores(self, n=10):
        return sorted(self.scores, key=lambda s: s.played_at, reverse=True)[:n]

    def append_score(self, score):
        stored = GameScoreRecord.from_dict({**score.to_dict(), 'id': len(self.scores) + 1})
        self.scores.append(stored)
        return stored

    def load_aggregated_key_stats(self):
        return self.key_stats.copy()

    def save_aggregated_key_stats(self, stats):
        self.key_stats = stats.copy()

    def load_settings(self):
        return Settings.from_dict(self.settings.to_dict())

    def save_settings(self, settings):
        self.settings = Settings.from_dict(settings.to_dict())

    def reset_stats(self):
        for word_id, word in self.words.items():
            self.words[word_id] = word.with_stats(WordStats(created_at=word.stats.created_at))
        self.scores = []
        self.key_stats = AggregatedStats()


# ============================================================================
# Test Cases
# ============================================================================

class TestAPI(unittest.TestCase):
    """Tests for the REST endpoints against an in-memory store."""

    def setUp(self):
        self.store = MockWordStore()
        server_app.storage = self.store
        self.client = TestClient(server_app.app)

    def tearDown(self):
        server_app.storage = None

    def seed(self, *romaji):
        return [self.store.add_word(r.upper(), r, r) for r in romaji]

    def test_health(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'status': 'ok', 'service': 'romatype'})

    def test_storage_not_initialized(self):
        server_app.storage = None
        self.assertEqual(self.client.get('/api/words').status_code, 503)

    def test_add_and_list_words(self):
        response = self.client.post('/api/words',
                                    json={'text': '寿司', 'reading': 'すし', 'romaji': ' SuShi '})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['romaji'], 'sushi')

        data = self.client.get('/api/words').json()
        self.assertEqual(data['total'], 1)
        self.assertEqual(data['words'][0]['text'], '寿司')

    def test_add_word_rejects_empty_romaji(self):
        response = self.client.post('/api/words', json={'text': '寿司', 'romaji': '  '})
        self.assertEqual(response.status_code, 400)

    def test_delete_word(self):
        word, = self.seed('ka')
        self.assertEqual(self.client.delete(f'/api/words/{word.id}').status_code, 200)
        self.assertEqual(self.client.delete(f'/api/words/{word.id}').status_code, 404)

    def test_update_settings_marks_custom(self):
        response = self.client.put('/api/settings', json={'base_penalty_percent': 7})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['difficulty_preset'], 'custom')
        self.assertEqual(data['base_penalty_percent'], 7)
        self.assertEqual(self.store.settings.difficulty.base_penalty_percent, 7)

    def test_update_settings_validation(self):
        response = self.client.put('/api/settings', json={'practice_mode': 'speedrun'})
        self.assertEqual(response.status_code, 400)
        response = self.client.put('/api/settings', json={'max_penalty_percent': 150})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.store.settings.difficulty.max_penalty_percent, 30)

    def test_update_settings_plain_fields_keep_preset(self):
        data = self.client.put('/api/settings', json={'word_count': 'all',
                                                      'practice_mode': 'review'}).json()
        self.assertEqual(data['difficulty_preset'], 'normal')
        self.assertEqual(data['word_count'], 'all')

    def test_apply_preset(self):
        response = self.client.post('/api/settings/preset', json={'preset': 'easy'})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['difficulty_preset'], 'easy')
        self.assertEqual(data['comfort_zone_ratio'], 1.15)
        self.assertEqual(len(data['penalty_preview']), 5)

        response = self.client.post('/api/settings/preset', json={'preset': 'legendary'})
        self.assertEqual(response.status_code, 400)

    def test_kps_without_history(self):
        data = self.client.get('/api/kps').json()
        self.assertEqual(data['average_kps'], 3.0)
        self.assertEqual(data['label'], 'collecting')
        self.assertEqual(data['target']['target_kps'], 3.2)
        self.assertIsNone(data['recommended_preset'])

    def test_session_words(self):
        self.seed('ka', 'shi', 'tsu', 'konnichiwa')
        response = self.client.post('/api/session/words', json={'count': 3, 'mode': 'random'})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['mode'], 'random')
        self.assertEqual(len(data['words']), 3)
        for word in data['words']:
            self.assertGreaterEqual(word['time_limit'], 2.0)
            self.assertLessEqual(word['time_limit'], 15.0)
        self.assertEqual(data['kps_status']['games_played'], 0)

    def test_session_words_defaults_from_settings(self):
        self.seed('ka', 'shi')
        data = self.client.post('/api/session/words', json={}).json()
        self.assertEqual(data['mode'], 'balanced')
        self.assertEqual(len(data['words']), 2)

    def test_session_words_bad_count(self):
        response = self.client.post('/api/session/words', json={'count': 'many'})
        self.assertEqual(response.status_code, 400)

    def test_session_results(self):
        ka, shi = self.seed('ka', 'shi')
        payload = {
            'outcomes': [
                {'word_id': ka.id, 'was_correct': True},
                {'word_id': shi.id, 'was_correct': False},
                {'word_id': '999', 'was_correct': True},
            ],
            'keystrokes': [
                {'key': 'k', 'actual_key': 'k', 'is_correct': True,
                 'timestamp': 1.0, 'latency': 120},
                {'key': 'a', 'actual_key': 's', 'is_correct': False,
                 'timestamp': 1.2, 'latency': 200, 'previous_key': 'k'},
            ],
            'score': {'kps': 4.2, 'total_keystrokes': 5, 'accuracy': 95,
                      'completed_words': 2, 'successful_words': 1, 'total_words': 2,
                      'total_time': 1.2, 'played_at': 100.0},
        }
        response = self.client.post('/api/session/results', json=payload)
        self.assertEqual(response.status_code, 200)
        data = response.json()

        self.assertEqual(len(data['updated_words']), 2)
        self.assertEqual(self.store.words[ka.id].stats.mastery_level, 1)
        self.assertEqual(self.store.words[shi.id].stats.miss, 1)
        self.assertEqual(self.store.key_stats.key_stats['a'].confused_with, {'s': 1})
        self.assertIn('k->a', self.store.key_stats.transition_stats)
        self.assertEqual(data['score']['id'], 1)
        self.assertEqual(data['recommended_preset'], 'hard')

    def test_session_results_skip_empty_score(self):
        payload = {'score': {'kps': 0, 'total_keystrokes': 0, 'accuracy': 100,
                             'completed_words': 0, 'successful_words': 0, 'total_words': 0,
                             'total_time': 0}}
        data = self.client.post('/api/session/results', json=payload).json()
        self.assertIsNone(data['score'])
        self.assertEqual(self.store.scores, [])

    def test_weakness(self):
        self.store.key_stats = server_app.analyzer.record(None, [
            server_app.KeystrokeEvent('a', 's', False, 0.0, 300.0),
        ] * 3, now=5.0)
        data = self.client.get('/api/weakness').json()
        self.assertEqual(data['weak_keys'][0]['key'], 'a')
        self.assertEqual(data['weak_keys'][0]['error_rate'], 1.0)
        self.assertEqual(data['weak_keys'][0]['confused_with'], [['s', 3]])
        self.assertEqual(data['weak_transitions'], [])

    def test_scores_and_kps_after_sessions(self):
        for i in range(3):
            self.store.append_score(GameScoreRecord(
                kps=5.0, total_keystrokes=50, accuracy=90, completed_words=10,
                successful_words=9, total_words=10, total_time=10.0, played_at=float(i + 1)))
        scores = self.client.get('/api/scores', params={'limit': 2}).json()['scores']
        self.assertEqual([s['played_at'] for s in scores], [3.0, 2.0])

        data = self.client.get('/api/kps').json()
        self.assertEqual(data['average_kps'], 5.0)
        self.assertEqual(data['recommended_preset'], 'hard')

    def test_validate(self):
        data = self.client.post('/api/validate', json={'target': 'shi', 'input': 's'}).json()
        self.assertFalse(data['is_correct'])
        self.assertEqual(data['matched_variant'], 'shi')
        self.assertEqual(data['expected_next'], 'h')
        self.assertEqual(data['remaining'], 'hi')

        data = self.client.post('/api/validate', json={'target': 'konnichiwa',
                                                       'input': 'konnnichiwa'}).json()
        self.assertTrue(data['is_correct'])

    def test_reset(self):
        word, = self.seed('ka')
        self.store.save_word_stats(word.id, WordStats(correct=4, last_played=2.0, created_at=1.0))
        self.assertEqual(self.client.post('/api/reset').status_code, 200)
        self.assertEqual(self.store.words[word.id].stats.correct, 0)
        self.assertEqual(self.store.words[word.id].stats.created_at, 1.0)


if __name__ == '__main__':
    unittest.main()
