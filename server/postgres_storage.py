"""PostgreSQL storage implementation."""

import json
import logging
import os
import time
import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import WordStore
from core.models import AggregatedStats, GameScoreRecord, Settings, Word, WordStats

logger = logging.getLogger(__name__)


def _parse_id(word_id) -> int | None:
    try:
        return int(word_id)
    except (TypeError, ValueError):
        return None


def _row_to_word(row: dict) -> Word:
    return Word(str(row['id']), row['text'], row['reading'], row['romaji'],
                WordStats.from_dict(row['stats'] or {}))


class PostgresStorage(WordStore):
    """PostgreSQL-based storage implementation."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/romatype'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS words (
                    id SERIAL PRIMARY KEY,
                    text VARCHAR(255) NOT NULL,
                    reading VARCHAR(255) NOT NULL DEFAULT '',
                    romaji VARCHAR(255) NOT NULL,
                    stats JSONB NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS game_scores (
                    id SERIAL PRIMARY KEY,
                    kps DOUBLE PRECISION NOT NULL,
                    total_keystrokes INTEGER NOT NULL,
                    accuracy DOUBLE PRECISION NOT NULL,
                    completed_words INTEGER NOT NULL,
                    successful_words INTEGER NOT NULL,
                    total_words INTEGER NOT NULL,
                    total_time DOUBLE PRECISION NOT NULL,
                    played_at DOUBLE PRECISION NOT NULL
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_game_scores_played_at
                ON game_scores(played_at)
            """)
            # Singleton documents: key stats, settings
            cur.execute("""
                CREATE TABLE IF NOT EXISTS learner_state (
                    name VARCHAR(64) PRIMARY KEY,
                    data JSONB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def _execute(self, query: str, params: tuple = ()) -> int:
        """Run a write query and commit. Returns the affected row count."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(query, params)
                count = cur.rowcount
            self.conn.commit()
            return count
        except Exception as e:
            logger.error(f"Database write failed: {e}")
            self.conn.rollback()
            raise

    # Words

    def list_words(self) -> list[Word]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT id, text, reading, romaji, stats FROM words ORDER BY id")
            return [_row_to_word(row) for row in cur.fetchall()]

    def get_word(self, word_id: str) -> Word | None:
        pk = _parse_id(word_id)
        if pk is None:
            return None
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT id, text, reading, romaji, stats FROM words WHERE id = %s",
                (pk,)
            )
            row = cur.fetchone()
            return _row_to_word(row) if row else None

    def add_word(self, text: str, reading: str, romaji: str) -> Word:
        stats = WordStats(created_at=time.time())
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO words (text, reading, romaji, stats)
                    VALUES (%s, %s, %s, %s)
                    RETURNING id
                """, (text, reading, romaji, json.dumps(stats.to_dict())))
                word_id = cur.fetchone()[0]
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error adding word: {e}")
            self.conn.rollback()
            raise
        return Word(str(word_id), text, reading, romaji, stats)

    def delete_word(self, word_id: str) -> bool:
        pk = _parse_id(word_id)
        if pk is None:
            return False
        return self._execute("DELETE FROM words WHERE id = %s", (pk,)) > 0

    def save_word_stats(self, word_id: str, stats: WordStats) -> None:
        pk = _parse_id(word_id)
        updated = 0
        if pk is not None:
            updated = self._execute(
                "UPDATE words SET stats = %s WHERE id = %s",
                (json.dumps(stats.to_dict()), pk)
            )
        if not updated:
            raise KeyError(f"Word not found: {word_id}")

    # Scores

    def list_recent_scores(self, n: int = 10) -> list[GameScoreRecord]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT * FROM game_scores ORDER BY played_at DESC LIMIT %s",
                (n,)
            )
            return [GameScoreRecord.from_dict(dict(row)) for row in cur.fetchall()]

    def append_score(self, score: GameScoreRecord) -> GameScoreRecord:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO game_scores (kps, total_keystrokes, accuracy, completed_words,
                                             successful_words, total_words, total_time, played_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                """, (score.kps, score.total_keystrokes, score.accuracy, score.completed_words,
                      score.successful_words, score.total_words, score.total_time,
                      score.played_at))
                score_id = cur.fetchone()[0]
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving score: {e}")
            self.conn.rollback()
            raise
        return GameScoreRecord.from_dict({**score.to_dict(), 'id': score_id})

    # Singleton documents

    def _load_document(self, name: str) -> dict | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT data FROM learner_state WHERE name = %s", (name,))
            row = cur.fetchone()
            return row['data'] if row else None

    def _save_document(self, name: str, data: dict) -> None:
        self._execute("""
            INSERT INTO learner_state (name, data, updated_at)
            VALUES (%s, %s, CURRENT_TIMESTAMP)
            ON CONFLICT (name)
            DO UPDATE SET data = EXCLUDED.data, updated_at = CURRENT_TIMESTAMP
        """, (name, json.dumps(data)))

    def load_aggregated_key_stats(self) -> AggregatedStats:
        return AggregatedStats.from_dict(self._load_document('key_stats'))

    def save_aggregated_key_stats(self, stats: AggregatedStats) -> None:
        self._save_document('key_stats', stats.to_dict())

    def load_settings(self) -> Settings:
        return Settings.from_dict(self._load_document('settings') or {})

    def save_settings(self, settings: Settings) -> None:
        self._save_document('settings', settings.to_dict())

    def reset_stats(self) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    UPDATE words SET stats = jsonb_build_object(
                        'created_at', COALESCE((stats->>'created_at')::double precision, 0)
                    )
                """)
                cur.execute("DELETE FROM game_scores")
                cur.execute("DELETE FROM learner_state WHERE name = 'key_stats'")
            self.conn.commit()
            logger.info("Reset all practice statistics")
        except Exception as e:
            logger.error(f"Error resetting stats: {e}")
            self.conn.rollback()
            raise
