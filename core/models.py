"""Domain models for romatype."""

import time

from .config import (
    MAX_MASTERY_LEVEL,
    RECENT_RESULTS_COUNT, RECENT_WORDS_COUNT, DEFAULT_RECENT_CORRECT_RATE,
    PRACTICE_MODES, DEFAULT_PRACTICE_MODE,
    TIME_LIMIT_MODES, DEFAULT_FIXED_TIME_LIMIT,
    DEFAULT_MIN_TIME_LIMIT, DEFAULT_MAX_TIME_LIMIT,
    DIFFICULTY_PRESET_NAMES, CUSTOM_PRESET, DEFAULT_DIFFICULTY_PRESET,
    DEFAULT_WORD_COUNT
)
from .utils import clamp


class WordStats:
    """Practice statistics for a single word."""

    def __init__(self, correct: int = 0, miss: int = 0, last_played: float = 0,
                 accuracy: float = 100.0, created_at: float = 0,
                 mastery_level: int = 0, next_review_at: float = 0,
                 consecutive_correct: int = 0):
        self.correct = correct
        self.miss = miss
        self.last_played = last_played
        self.accuracy = accuracy
        self.created_at = created_at
        self.mastery_level = int(clamp(mastery_level, 0, MAX_MASTERY_LEVEL))
        self.next_review_at = next_review_at
        self.consecutive_correct = max(0, consecutive_correct)

    @property
    def attempts(self) -> int:
        return self.correct + self.miss

    @property
    def has_played(self) -> bool:
        return self.last_played > 0

    def to_dict(self) -> dict:
        return {
            'correct': self.correct,
            'miss': self.miss,
            'last_played': self.last_played,
            'accuracy': self.accuracy,
            'created_at': self.created_at,
            'mastery_level': self.mastery_level,
            'next_review_at': self.next_review_at,
            'consecutive_correct': self.consecutive_correct
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordStats':
        return cls(
            correct=data.get('correct', 0),
            miss=data.get('miss', 0),
            last_played=data.get('last_played', 0),
            accuracy=data.get('accuracy', 100.0),
            created_at=data.get('created_at', 0),
            mastery_level=data.get('mastery_level', 0),
            next_review_at=data.get('next_review_at', 0),
            consecutive_correct=data.get('consecutive_correct', 0)
        )

    def __eq__(self, other) -> bool:
        return isinstance(other, WordStats) and self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"WordStats(correct={self.correct}, miss={self.miss}, "
                f"level={self.mastery_level}, accuracy={self.accuracy:.1f})")


class Word:
    """A vocabulary item with its romanized reading."""

    def __init__(self, id: str, text: str, reading: str, romaji: str,
                 stats: WordStats | None = None):
        self.id = str(id)
        self.text = text
        self.reading = reading
        self.romaji = romaji
        self.stats = stats or WordStats()

    def with_stats(self, stats: WordStats) -> 'Word':
        """Return a copy of this word carrying new stats."""
        return Word(self.id, self.text, self.reading, self.romaji, stats)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'text': self.text,
            'reading': self.reading,
            'romaji': self.romaji,
            'stats': self.stats.to_dict()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Word':
        return cls(
            id=data['id'],
            text=data['text'],
            reading=data.get('reading', ''),
            romaji=data['romaji'],
            stats=WordStats.from_dict(data.get('stats', {}))
        )

    def __repr__(self) -> str:
        return f"Word({self.id!r}, {self.text!r}, {self.romaji!r})"


class KeystrokeEvent:
    """One keystroke as seen by the analyzer."""

    def __init__(self, key: str, actual_key: str, is_correct: bool,
                 timestamp: float, latency: float, previous_key: str | None = None):
        self.key = key
        self.actual_key = actual_key
        self.is_correct = is_correct
        self.timestamp = timestamp
        self.latency = latency
        self.previous_key = previous_key

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'actual_key': self.actual_key,
            'is_correct': self.is_correct,
            'timestamp': self.timestamp,
            'latency': self.latency,
            'previous_key': self.previous_key
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'KeystrokeEvent':
        return cls(
            key=data['key'],
            actual_key=data.get('actual_key', data['key']),
            is_correct=data.get('is_correct', True),
            timestamp=data.get('timestamp', 0),
            latency=data.get('latency', 0),
            previous_key=data.get('previous_key')
        )


class KeyStats:
    """Aggregate for a single expected key."""

    def __init__(self, key: str, total_count: int = 0, error_count: int = 0,
                 total_latency: float = 0, confused_with: dict | None = None):
        self.key = key
        self.total_count = total_count
        self.error_count = min(error_count, total_count)
        self.total_latency = total_latency
        self.confused_with = dict(confused_with or {})

    @property
    def error_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.error_count / self.total_count

    @property
    def avg_latency(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.total_latency / self.total_count

    def copy(self) -> 'KeyStats':
        return KeyStats(self.key, self.total_count, self.error_count,
                        self.total_latency, self.confused_with)

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'total_count': self.total_count,
            'error_count': self.error_count,
            'total_latency': self.total_latency,
            'confused_with': dict(self.confused_with)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'KeyStats':
        return cls(
            key=data['key'],
            total_count=data.get('total_count', 0),
            error_count=data.get('error_count', 0),
            total_latency=data.get('total_latency', 0),
            confused_with=data.get('confused_with', {})
        )


class KeyTransitionStats:
    """Aggregate for an ordered pair of consecutive keys."""

    def __init__(self, from_key: str, to_key: str, total_count: int = 0,
                 error_count: int = 0, total_latency: float = 0):
        self.from_key = from_key
        self.to_key = to_key
        self.total_count = total_count
        self.error_count = min(error_count, total_count)
        self.total_latency = total_latency

    @staticmethod
    def make_id(from_key: str, to_key: str) -> str:
        return f"{from_key}->{to_key}"

    @property
    def id(self) -> str:
        return self.make_id(self.from_key, self.to_key)

    @property
    def error_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.error_count / self.total_count

    @property
    def avg_latency(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.total_latency / self.total_count

    def copy(self) -> 'KeyTransitionStats':
        return KeyTransitionStats(self.from_key, self.to_key, self.total_count,
                                  self.error_count, self.total_latency)

    def to_dict(self) -> dict:
        return {
            'from_key': self.from_key,
            'to_key': self.to_key,
            'total_count': self.total_count,
            'error_count': self.error_count,
            'total_latency': self.total_latency
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'KeyTransitionStats':
        return cls(
            from_key=data['from_key'],
            to_key=data['to_key'],
            total_count=data.get('total_count', 0),
            error_count=data.get('error_count', 0),
            total_latency=data.get('total_latency', 0)
        )


class AggregatedStats:
    """All key and transition aggregates for the learner."""

    def __init__(self, key_stats: dict | None = None, transition_stats: dict | None = None,
                 last_updated: float = 0):
        self.key_stats = key_stats or {}                # key -> KeyStats
        self.transition_stats = transition_stats or {}  # "a->b" -> KeyTransitionStats
        self.last_updated = last_updated

    def copy(self) -> 'AggregatedStats':
        return AggregatedStats(
            {k: s.copy() for k, s in self.key_stats.items()},
            {k: s.copy() for k, s in self.transition_stats.items()},
            self.last_updated
        )

    def to_dict(self) -> dict:
        return {
            'key_stats': {k: s.to_dict() for k, s in self.key_stats.items()},
            'transition_stats': {k: s.to_dict() for k, s in self.transition_stats.items()},
            'last_updated': self.last_updated
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'AggregatedStats':
        if not data:
            return cls()
        return cls(
            {k: KeyStats.from_dict(v) for k, v in data.get('key_stats', {}).items()},
            {k: KeyTransitionStats.from_dict(v) for k, v in data.get('transition_stats', {}).items()},
            data.get('last_updated', 0)
        )


class GameScoreRecord:
    """Summary of one completed session. Treated as immutable."""

    def __init__(self, kps: float, total_keystrokes: int, accuracy: float,
                 completed_words: int, successful_words: int, total_words: int,
                 total_time: float, played_at: float | None = None, id: int | None = None):
        self.id = id
        self.kps = kps
        self.total_keystrokes = total_keystrokes
        self.accuracy = accuracy
        self.completed_words = completed_words
        self.successful_words = successful_words
        self.total_words = total_words
        self.total_time = total_time
        self.played_at = played_at if played_at is not None else time.time()

    @property
    def is_valid_for_kps(self) -> bool:
        return self.kps > 0 and self.total_time > 0

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'kps': self.kps,
            'total_keystrokes': self.total_keystrokes,
            'accuracy': self.accuracy,
            'completed_words': self.completed_words,
            'successful_words': self.successful_words,
            'total_words': self.total_words,
            'total_time': self.total_time,
            'played_at': self.played_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GameScoreRecord':
        return cls(
            kps=data.get('kps', 0),
            total_keystrokes=data.get('total_keystrokes', 0),
            accuracy=data.get('accuracy', 100),
            completed_words=data.get('completed_words', 0),
            successful_words=data.get('successful_words', 0),
            total_words=data.get('total_words', 0),
            total_time=data.get('total_time', 0),
            played_at=data.get('played_at', 0),
            id=data.get('id')
        )


class DifficultyParams:
    """Time-limit and miss-penalty parameters for one difficulty level."""

    FIELDS = (
        'target_kps_multiplier', 'comfort_zone_ratio', 'min_time_limit_by_difficulty',
        'miss_penalty_enabled', 'base_penalty_percent', 'penalty_escalation_factor',
        'max_penalty_percent', 'min_time_after_penalty'
    )

    def __init__(self, target_kps_multiplier: float = 1.05, comfort_zone_ratio: float = 1.0,
                 min_time_limit_by_difficulty: float = 2.0, miss_penalty_enabled: bool = True,
                 base_penalty_percent: float = 5, penalty_escalation_factor: float = 1.5,
                 max_penalty_percent: float = 30, min_time_after_penalty: float = 0.5):
        self.target_kps_multiplier = target_kps_multiplier
        self.comfort_zone_ratio = comfort_zone_ratio
        self.min_time_limit_by_difficulty = min_time_limit_by_difficulty
        self.miss_penalty_enabled = miss_penalty_enabled
        self.base_penalty_percent = base_penalty_percent
        self.penalty_escalation_factor = penalty_escalation_factor
        self.max_penalty_percent = max_penalty_percent
        self.min_time_after_penalty = min_time_after_penalty

    def validate(self) -> None:
        """Raise ValueError on malformed parameters."""
        for name in ('base_penalty_percent', 'max_penalty_percent'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within [0, 100], got {value}")
        if self.penalty_escalation_factor < 1:
            raise ValueError(
                f"penalty_escalation_factor must be >= 1, got {self.penalty_escalation_factor}")
        if self.target_kps_multiplier <= 0:
            raise ValueError("target_kps_multiplier must be positive")
        if self.comfort_zone_ratio <= 0:
            raise ValueError("comfort_zone_ratio must be positive")
        if self.min_time_after_penalty < 0:
            raise ValueError("min_time_after_penalty must not be negative")

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}

    @classmethod
    def from_dict(cls, data: dict) -> 'DifficultyParams':
        return cls(**{name: data[name] for name in cls.FIELDS if name in data})

    def __eq__(self, other) -> bool:
        return isinstance(other, DifficultyParams) and self.to_dict() == other.to_dict()


class Settings:
    """Learner settings. Difficulty fields are tagged with the preset they came from."""

    def __init__(self, difficulty: DifficultyParams | None = None,
                 difficulty_preset: str = DEFAULT_DIFFICULTY_PRESET,
                 word_count=DEFAULT_WORD_COUNT,
                 practice_mode: str = DEFAULT_PRACTICE_MODE,
                 srs_enabled: bool = True, warmup_enabled: bool = True,
                 time_limit_mode: str = 'adaptive',
                 fixed_time_limit: float = DEFAULT_FIXED_TIME_LIMIT,
                 min_time_limit: float = DEFAULT_MIN_TIME_LIMIT,
                 max_time_limit: float = DEFAULT_MAX_TIME_LIMIT):
        self.difficulty = difficulty or DifficultyParams()
        self.difficulty_preset = difficulty_preset
        self.word_count = word_count
        self.practice_mode = practice_mode
        self.srs_enabled = srs_enabled
        self.warmup_enabled = warmup_enabled
        self.time_limit_mode = time_limit_mode
        self.fixed_time_limit = fixed_time_limit
        self.min_time_limit = min_time_limit
        self.max_time_limit = max_time_limit

    @property
    def is_custom(self) -> bool:
        return self.difficulty_preset == CUSTOM_PRESET

    def set_difficulty_param(self, name: str, value) -> None:
        """Hand-edit one difficulty parameter; the settings become 'custom'."""
        if name not in DifficultyParams.FIELDS:
            raise ValueError(f"Unknown difficulty parameter: {name}")
        setattr(self.difficulty, name, value)
        self.difficulty_preset = CUSTOM_PRESET

    def effective_word_count(self, available: int) -> int:
        if self.word_count == 'all' or self.word_count is None:
            return available
        return min(int(self.word_count), available)

    def validate(self) -> None:
        """Raise ValueError on malformed settings."""
        self.difficulty.validate()
        if self.practice_mode not in PRACTICE_MODES:
            raise ValueError(f"Unknown practice mode: {self.practice_mode}")
        if self.difficulty_preset not in DIFFICULTY_PRESET_NAMES + (CUSTOM_PRESET,):
            raise ValueError(f"Unknown difficulty preset: {self.difficulty_preset}")
        if self.time_limit_mode not in TIME_LIMIT_MODES:
            raise ValueError(f"Unknown time limit mode: {self.time_limit_mode}")
        if self.min_time_limit <= 0 or self.max_time_limit < self.min_time_limit:
            raise ValueError("Time limits must satisfy 0 < min_time_limit <= max_time_limit")
        if self.fixed_time_limit <= 0:
            raise ValueError("fixed_time_limit must be positive")
        if self.word_count != 'all' and (not isinstance(self.word_count, int) or self.word_count < 1):
            raise ValueError("word_count must be a positive integer or 'all'")

    def to_dict(self) -> dict:
        return {
            'difficulty_preset': self.difficulty_preset,
            'word_count': self.word_count,
            'practice_mode': self.practice_mode,
            'srs_enabled': self.srs_enabled,
            'warmup_enabled': self.warmup_enabled,
            'time_limit_mode': self.time_limit_mode,
            'fixed_time_limit': self.fixed_time_limit,
            'min_time_limit': self.min_time_limit,
            'max_time_limit': self.max_time_limit,
            **self.difficulty.to_dict()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Settings':
        defaults = cls()
        return cls(
            difficulty=DifficultyParams.from_dict({**defaults.difficulty.to_dict(), **data}),
            difficulty_preset=data.get('difficulty_preset', defaults.difficulty_preset),
            word_count=data.get('word_count', defaults.word_count),
            practice_mode=data.get('practice_mode', defaults.practice_mode),
            srs_enabled=data.get('srs_enabled', defaults.srs_enabled),
            warmup_enabled=data.get('warmup_enabled', defaults.warmup_enabled),
            time_limit_mode=data.get('time_limit_mode', defaults.time_limit_mode),
            fixed_time_limit=data.get('fixed_time_limit', defaults.fixed_time_limit),
            min_time_limit=data.get('min_time_limit', defaults.min_time_limit),
            max_time_limit=data.get('max_time_limit', defaults.max_time_limit)
        )


class SessionHistory:
    """Rolling view of what has been played in the current session."""

    def __init__(self, started_at: float | None = None):
        self.words_played = 0
        self.recent_results = []    # last RECENT_RESULTS_COUNT outcomes
        self.recent_word_ids = []   # last RECENT_WORDS_COUNT word ids
        self.session_word_ids = set()
        self.started_at = started_at if started_at is not None else time.time()

    def record(self, word_id: str, was_correct: bool) -> None:
        """Record a finished word."""
        self.recent_results.append(was_correct)
        if len(self.recent_results) > RECENT_RESULTS_COUNT:
            self.recent_results = self.recent_results[-RECENT_RESULTS_COUNT:]
        self.mark_selected(word_id)
        self.words_played += 1

    def mark_selected(self, word_id: str) -> None:
        """Record that a word was put in front of the learner."""
        self.recent_word_ids.append(word_id)
        if len(self.recent_word_ids) > RECENT_WORDS_COUNT:
            self.recent_word_ids = self.recent_word_ids[-RECENT_WORDS_COUNT:]
        self.session_word_ids.add(word_id)

    def recent_correct_rate(self) -> float:
        if not self.recent_results:
            return DEFAULT_RECENT_CORRECT_RATE
        return sum(1 for r in self.recent_results if r) / len(self.recent_results)

    def copy(self) -> 'SessionHistory':
        history = SessionHistory(self.started_at)
        history.words_played = self.words_played
        history.recent_results = list(self.recent_results)
        history.recent_word_ids = list(self.recent_word_ids)
        history.session_word_ids = set(self.session_word_ids)
        return history

    def to_dict(self) -> dict:
        return {
            'words_played': self.words_played,
            'recent_results': self.recent_results,
            'recent_word_ids': self.recent_word_ids,
            'session_word_ids': sorted(self.session_word_ids),
            'started_at': self.started_at
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'SessionHistory':
        history = cls(started_at=(data or {}).get('started_at'))
        if not data:
            return history
        history.words_played = data.get('words_played', 0)
        history.recent_results = list(data.get('recent_results', []))[-RECENT_RESULTS_COUNT:]
        history.recent_word_ids = list(data.get('recent_word_ids', []))[-RECENT_WORDS_COUNT:]
        history.session_word_ids = set(data.get('session_word_ids', []))
        return history
