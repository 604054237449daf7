"""Tests for the JSON file storage backend."""

import json
import os
import shutil
import tempfile
import unittest

from core.models import AggregatedStats, GameScoreRecord, KeyStats, Settings, WordStats
from core.presets import apply_preset
from scripts.seed_words import get_seed_words, seed
from server.file_storage import FileStorage


def make_score(kps, played_at):
    return GameScoreRecord(kps=kps, total_keystrokes=30, accuracy=80, completed_words=5,
                           successful_words=4, total_words=5, total_time=10.0,
                           played_at=played_at)


class TestFileStorage(unittest.TestCase):

    def setUp(self):
        self.state_dir = tempfile.mkdtemp()
        self.storage = FileStorage(self.state_dir)

    def tearDown(self):
        shutil.rmtree(self.state_dir)

    def test_empty_store(self):
        self.assertEqual(self.storage.list_words(), [])
        self.assertEqual(self.storage.list_recent_scores(), [])
        self.assertEqual(self.storage.load_aggregated_key_stats().key_stats, {})
        self.assertEqual(self.storage.load_settings().difficulty_preset, 'normal')

    def test_add_and_get_word(self):
        word = self.storage.add_word('寿司', 'すし', 'sushi')
        self.assertEqual(word.id, '1')
        self.assertGreater(word.stats.created_at, 0)
        self.assertEqual(word.stats.mastery_level, 0)

        loaded = self.storage.get_word('1')
        self.assertEqual(loaded.text, '寿司')
        self.assertEqual(loaded.romaji, 'sushi')
        self.assertIsNone(self.storage.get_word('99'))

    def test_ids_are_not_reused(self):
        self.storage.add_word('a', 'a', 'a')
        self.storage.add_word('b', 'b', 'b')
        self.assertTrue(self.storage.delete_word('2'))
        self.assertFalse(self.storage.delete_word('2'))
        word = self.storage.add_word('c', 'c', 'c')
        self.assertEqual(word.id, '3')
        self.assertEqual([w.id for w in self.storage.list_words()], ['1', '3'])

    def test_save_word_stats(self):
        word = self.storage.add_word('猫', 'ねこ', 'neko')
        stats = WordStats(correct=2, miss=1, last_played=50.0, accuracy=66.7,
                          mastery_level=2, next_review_at=500.0)
        self.storage.save_word_stats(word.id, stats)
        self.assertEqual(self.storage.get_word(word.id).stats, stats)

        with self.assertRaises(KeyError):
            self.storage.save_word_stats('42', stats)

    def test_scores_newest_first(self):
        for played_at in (10.0, 30.0, 20.0):
            self.storage.append_score(make_score(3.0, played_at))
        scores = self.storage.list_recent_scores()
        self.assertEqual([s.played_at for s in scores], [30.0, 20.0, 10.0])
        self.assertEqual(len(self.storage.list_recent_scores(2)), 2)

    def test_append_score_assigns_id(self):
        first = self.storage.append_score(make_score(3.0, 1.0))
        second = self.storage.append_score(make_score(3.5, 2.0))
        self.assertEqual(first.id, 1)
        self.assertEqual(second.id, 2)

    def test_key_stats_roundtrip(self):
        stats = AggregatedStats({'a': KeyStats('a', 4, 1, 800.0, {'s': 1})}, {}, 5.0)
        self.storage.save_aggregated_key_stats(stats)
        loaded = self.storage.load_aggregated_key_stats()
        self.assertEqual(loaded.key_stats['a'].error_count, 1)
        self.assertEqual(loaded.key_stats['a'].confused_with, {'s': 1})
        self.assertEqual(loaded.last_updated, 5.0)

    def test_settings_roundtrip(self):
        settings = apply_preset(Settings(word_count=10), 'hard')
        self.storage.save_settings(settings)
        loaded = self.storage.load_settings()
        self.assertEqual(loaded.difficulty_preset, 'hard')
        self.assertEqual(loaded.difficulty, settings.difficulty)
        self.assertEqual(loaded.word_count, 10)

    def test_reset_stats_keeps_words(self):
        word = self.storage.add_word('犬', 'いぬ', 'inu')
        created_at = word.stats.created_at
        self.storage.save_word_stats(word.id, WordStats(correct=3, last_played=9.0,
                                                        created_at=created_at))
        self.storage.append_score(make_score(3.0, 1.0))
        self.storage.save_aggregated_key_stats(
            AggregatedStats({'i': KeyStats('i', 3)}, {}, 1.0))

        self.storage.reset_stats()

        words = self.storage.list_words()
        self.assertEqual(len(words), 1)
        self.assertEqual(words[0].stats.correct, 0)
        self.assertEqual(words[0].stats.created_at, created_at)
        self.assertEqual(self.storage.list_recent_scores(), [])
        self.assertEqual(self.storage.load_aggregated_key_stats().key_stats, {})

    def test_corrupt_file_falls_back_to_default(self):
        with open(os.path.join(self.state_dir, 'romatype_scores.json'), 'w') as f:
            f.write('{not json')
        with self.assertLogs('server.file_storage', level='ERROR'):
            self.assertEqual(self.storage.list_recent_scores(), [])

    def test_files_are_json(self):
        self.storage.add_word('木', 'き', 'ki')
        with open(os.path.join(self.state_dir, 'romatype_words.json'), encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data['next_id'], 2)
        self.assertEqual(data['words'][0]['text'], '木')
        self.assertFalse(os.path.exists(os.path.join(self.state_dir, 'romatype_words.json.tmp')))

    def test_state_dir_from_environment(self):
        other = os.path.join(self.state_dir, 'nested')
        os.environ['ROMATYPE_STATE_DIR'] = other
        try:
            storage = FileStorage()
        finally:
            del os.environ['ROMATYPE_STATE_DIR']
        self.assertEqual(storage.state_dir, other)
        self.assertTrue(os.path.isdir(other))

    def test_seed_words_skips_existing(self):
        total = sum(len(c['items']) for c in get_seed_words().values())
        self.assertEqual(seed(self.storage), total)
        self.assertEqual(seed(self.storage), 0)
        self.assertEqual(len(self.storage.list_words()), total)
        for word in self.storage.list_words():
            self.assertTrue(word.romaji)


if __name__ == '__main__':
    unittest.main()
