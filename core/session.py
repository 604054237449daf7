"""One play-through as an explicit state machine.

``start_session`` builds the initial state and ``reduce`` applies one event.
Both return ``(state, effects)``; the state passed in is never modified, so
callers can keep old states around. Effects are plain records describing
what happened; persisting them is up to the caller.

    state, effects = start_session(words, settings, scores, now=t0)
    state, effects = reduce(state, KeyPressed('k', t0 + 0.3))
    state, effects = reduce(state, TimerTick())
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import TIMER_TICK_SECONDS
from .models import GameScoreRecord, KeystrokeEvent, SessionHistory, Settings, Word
from .romaji import RomajiMatcher, ValidationResult, default_matcher
from .timing import PenaltyCalculator, TimeLimitCalculator
from .utils import round_half_up

logger = logging.getLogger(__name__)


# Events

@dataclass(frozen=True)
class KeyPressed:
    key: str
    timestamp: float


@dataclass(frozen=True)
class Backspace:
    timestamp: float


@dataclass(frozen=True)
class TimerTick:
    elapsed: float = TIMER_TICK_SECONDS


@dataclass(frozen=True)
class ExitRequested:
    timestamp: float


# Effects

@dataclass(frozen=True)
class WordResult:
    word_id: str
    text: str
    reading: str
    romaji: str
    success: bool           # completed with zero misses
    completed: bool         # finished before the countdown ran out
    miss_count: int
    completion_time: float  # ms
    reaction_time: float    # ms until the first key, 0 if none


@dataclass(frozen=True)
class WordStarted:
    index: int
    word_id: str
    time_limit: float


@dataclass(frozen=True)
class KeyAccepted:
    key: str
    validation: ValidationResult


@dataclass(frozen=True)
class KeyRejected:
    key: str
    expected: Optional[str]
    miss_count: int
    penalty: float


@dataclass(frozen=True)
class WordFinished:
    result: WordResult


@dataclass(frozen=True)
class SessionEnded:
    score: GameScoreRecord
    results: list = field(default_factory=list)


def is_typing_key(key: str) -> bool:
    """Single printable, non-space characters only; modifiers and Enter are ignored."""
    return len(key) == 1 and key.isprintable() and not key.isspace()


class SessionState:
    """Everything one session needs between events."""

    def __init__(self, words: list[Word], settings: Settings,
                 scores: list[GameScoreRecord], started_at: float):
        self.words = list(words)
        self.settings = settings
        self.scores = list(scores)
        self.started_at = started_at
        self.clock = started_at

        self.index = 0
        self.input = ''
        self.time_limit = 0.0
        self.time_remaining = 0.0
        self.miss_count = 0
        self.word_started_at = started_at
        self.first_key_at = None
        self.last_key_at = started_at
        self.previous_key = None

        self.total_keystrokes = 0
        self.results = []       # WordResult per finished word
        self.keystrokes = []    # KeystrokeEvent log for the weakness analyzer
        self.history = SessionHistory(started_at=started_at)
        self.is_over = False
        self.score = None

    @property
    def current_word(self) -> Word | None:
        if self.is_over or self.index >= len(self.words):
            return None
        return self.words[self.index]

    def clone(self) -> 'SessionState':
        copy = SessionState.__new__(SessionState)
        copy.__dict__.update(self.__dict__)
        copy.results = list(self.results)
        copy.keystrokes = list(self.keystrokes)
        copy.history = self.history.copy()
        return copy

    def to_dict(self) -> dict:
        word = self.current_word
        return {
            'index': self.index,
            'total_words': len(self.words),
            'word_id': word.id if word else None,
            'input': self.input,
            'time_limit': self.time_limit,
            'time_remaining': self.time_remaining,
            'miss_count': self.miss_count,
            'total_keystrokes': self.total_keystrokes,
            'is_over': self.is_over
        }


class SessionEngine:
    """Holds the collaborators the reducer consults."""

    def __init__(self, matcher: RomajiMatcher | None = None,
                 time_limits: TimeLimitCalculator | None = None,
                 penalties: PenaltyCalculator | None = None):
        self.matcher = matcher or default_matcher()
        self.time_limits = time_limits or TimeLimitCalculator()
        self.penalties = penalties or PenaltyCalculator()

    def start_session(self, words: list[Word], settings: Settings,
                      scores: list[GameScoreRecord], now: float):
        state = SessionState(words, settings, scores, now)
        logger.debug(f"Session started with {len(state.words)} words")
        if not state.words:
            return state, self._end(state)
        return state, [self._start_word(state, now)]

    def reduce(self, state: SessionState, event):
        if state.is_over:
            return state, []

        if not isinstance(event, (KeyPressed, Backspace, TimerTick, ExitRequested)):
            raise TypeError(f"Unknown session event: {event!r}")
        if isinstance(event, KeyPressed) and not is_typing_key(event.key):
            return state, []

        state = state.clone()
        if isinstance(event, TimerTick):
            state.clock += event.elapsed
            return state, self._tick(state, event.elapsed)

        state.clock = max(state.clock, event.timestamp)
        if isinstance(event, KeyPressed):
            return state, self._key(state, event)
        if isinstance(event, Backspace):
            state.input = state.input[:-1]
            return state, []
        effects = [self._finish_word(state, completed=False)]
        return state, effects + self._end(state)

    def _start_word(self, state: SessionState, now: float) -> WordStarted:
        word = state.words[state.index]
        state.time_limit = self.time_limits.calculate_word_time_limit(word, state.scores, state.settings)
        state.time_remaining = state.time_limit
        state.input = ''
        state.miss_count = 0
        state.word_started_at = now
        state.first_key_at = None
        state.last_key_at = now
        state.previous_key = None
        return WordStarted(state.index, word.id, state.time_limit)

    def _key(self, state: SessionState, event: KeyPressed) -> list:
        word = state.current_word
        char = event.key.lower()
        before = self.matcher.validate(word.romaji, state.input)
        after = self.matcher.validate(word.romaji, state.input + char)

        if state.first_key_at is None:
            state.first_key_at = event.timestamp
        latency = max(event.timestamp - state.last_key_at, 0) * 1000
        state.last_key_at = event.timestamp
        state.total_keystrokes += 1

        if not after.is_valid_prefix:
            expected = before.expected_next or char
            state.keystrokes.append(KeystrokeEvent(
                expected, char, False, event.timestamp, latency, state.previous_key))
            state.miss_count += 1
            penalty = self.penalties.calculate_miss_penalty(
                state.miss_count, state.time_remaining, state.settings.difficulty)
            state.time_remaining = max(round(state.time_remaining - penalty, 3), 0.0)
            return [KeyRejected(char, before.expected_next, state.miss_count, penalty)]

        state.keystrokes.append(KeystrokeEvent(
            char, char, True, event.timestamp, latency, state.previous_key))
        state.previous_key = char
        state.input += char
        effects = [KeyAccepted(char, after)]
        if after.is_correct:
            effects.append(self._finish_word(state, completed=True))
            effects.extend(self._advance(state))
        return effects

    def _tick(self, state: SessionState, elapsed: float) -> list:
        state.time_remaining = max(round(state.time_remaining - elapsed, 3), 0.0)
        if state.time_remaining > 0:
            return []
        logger.debug(f"Time up on word {state.index}")
        effects = [self._finish_word(state, completed=False)]
        return effects + self._advance(state)

    def _finish_word(self, state: SessionState, completed: bool) -> WordFinished:
        word = state.current_word
        success = completed and state.miss_count == 0
        reaction = 0.0
        if state.first_key_at is not None:
            reaction = (state.first_key_at - state.word_started_at) * 1000
        result = WordResult(
            word_id=word.id,
            text=word.text,
            reading=word.reading,
            romaji=word.romaji,
            success=success,
            completed=completed,
            miss_count=state.miss_count,
            completion_time=(state.clock - state.word_started_at) * 1000,
            reaction_time=reaction
        )
        state.results.append(result)
        state.history.record(word.id, success)
        return WordFinished(result)

    def _advance(self, state: SessionState) -> list:
        state.index += 1
        if state.index >= len(state.words):
            return self._end(state)
        return [self._start_word(state, state.clock)]

    def _end(self, state: SessionState) -> list:
        state.is_over = True
        total_time = state.clock - state.started_at
        results = state.results
        successful = sum(1 for r in results if r.success)
        kps = round_half_up(state.total_keystrokes / total_time, 1) if total_time > 0 else 0.0
        accuracy = round_half_up(successful / len(results) * 100) if results else 100

        state.score = GameScoreRecord(
            kps=kps,
            total_keystrokes=state.total_keystrokes,
            accuracy=accuracy,
            completed_words=sum(1 for r in results if r.completed),
            successful_words=successful,
            total_words=len(state.words),
            total_time=total_time,
            played_at=state.clock
        )
        logger.debug(f"Session ended: {successful}/{len(results)} words, {kps} kps")
        return [SessionEnded(state.score, list(results))]


_default_engine = SessionEngine()


def start_session(words: list[Word], settings: Settings,
                  scores: list[GameScoreRecord], now: float):
    return _default_engine.start_session(words, settings, scores, now)


def reduce(state: SessionState, event):
    return _default_engine.reduce(state, event)


def word_outcomes(state: SessionState) -> list[tuple[str, bool]]:
    """(word_id, was_correct) for every finished word, in play order."""
    return [(r.word_id, r.success) for r in state.results]


def retry_words(state: SessionState) -> list[Word]:
    """Words that were not finished cleanly, once each, in play order."""
    missed = {r.word_id for r in state.results if not r.success}
    seen = set()
    words = []
    for word in state.words:
        if word.id in missed and word.id not in seen:
            seen.add(word.id)
            words.append(word)
    return words
