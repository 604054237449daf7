"""File-based storage implementation."""

import json
import logging
import os
import time

from core.interfaces import WordStore
from core.models import AggregatedStats, GameScoreRecord, Settings, Word, WordStats

logger = logging.getLogger(__name__)


class FileStorage(WordStore):
    """JSON files in a state directory, one file per collection."""

    def __init__(self, state_dir: str = None):
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.getenv('ROMATYPE_STATE_DIR') or project_root
        os.makedirs(self.state_dir, exist_ok=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.state_dir, f'romatype_{name}.json')

    def _load(self, name: str, default):
        path = self._path(name)
        if not os.path.exists(path):
            return default
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt state file {path}: {e}")
            return default

    def _save(self, name: str, data) -> None:
        path = self._path(name)
        tmp_path = path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    # Words

    def _load_words(self) -> dict:
        return self._load('words', {'next_id': 1, 'words': []})

    def list_words(self) -> list[Word]:
        return [Word.from_dict(w) for w in self._load_words()['words']]

    def get_word(self, word_id: str) -> Word | None:
        for data in self._load_words()['words']:
            if data['id'] == str(word_id):
                return Word.from_dict(data)
        return None

    def add_word(self, text: str, reading: str, romaji: str) -> Word:
        store = self._load_words()
        word = Word(str(store['next_id']), text, reading, romaji,
                    WordStats(created_at=time.time()))
        store['next_id'] += 1
        store['words'].append(word.to_dict())
        self._save('words', store)
        return word

    def delete_word(self, word_id: str) -> bool:
        store = self._load_words()
        remaining = [w for w in store['words'] if w['id'] != str(word_id)]
        if len(remaining) == len(store['words']):
            return False
        store['words'] = remaining
        self._save('words', store)
        return True

    def save_word_stats(self, word_id: str, stats: WordStats) -> None:
        store = self._load_words()
        for data in store['words']:
            if data['id'] == str(word_id):
                data['stats'] = stats.to_dict()
                self._save('words', store)
                return
        raise KeyError(f"Word not found: {word_id}")

    # Scores

    def list_recent_scores(self, n: int = 10) -> list[GameScoreRecord]:
        scores = [GameScoreRecord.from_dict(s) for s in self._load('scores', [])]
        scores.sort(key=lambda s: s.played_at, reverse=True)
        return scores[:n]

    def append_score(self, score: GameScoreRecord) -> GameScoreRecord:
        scores = self._load('scores', [])
        next_id = max((s.get('id') or 0 for s in scores), default=0) + 1
        stored = GameScoreRecord.from_dict({**score.to_dict(), 'id': next_id})
        scores.append(stored.to_dict())
        self._save('scores', scores)
        return stored

    # Key stats

    def load_aggregated_key_stats(self) -> AggregatedStats:
        return AggregatedStats.from_dict(self._load('key_stats', None))

    def save_aggregated_key_stats(self, stats: AggregatedStats) -> None:
        self._save('key_stats', stats.to_dict())

    # Settings

    def load_settings(self) -> Settings:
        return Settings.from_dict(self._load('settings', {}))

    def save_settings(self, settings: Settings) -> None:
        self._save('settings', settings.to_dict())

    def reset_stats(self) -> None:
        store = self._load_words()
        for data in store['words']:
            created_at = data.get('stats', {}).get('created_at', 0)
            data['stats'] = WordStats(created_at=created_at).to_dict()
        self._save('words', store)
        self._save('scores', [])
        self._save('key_stats', AggregatedStats().to_dict())
        logger.info("Reset all practice statistics")
