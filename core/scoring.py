"""Multi-factor priority scoring for practice words."""

import logging
import math
import random
import time
from dataclasses import dataclass

from .config import (
    MODE_WEIGHTS, WARMUP_RATIO, WARMUP_EASY_THRESHOLD, SESSION_REPEAT_MULTIPLIER
)
from .mastery import MasteryTracker
from .models import Word, SessionHistory
from .utils import normalize_romaji
from .weakness import ScoringContext

logger = logging.getLogger(__name__)

SRS_DISABLED_TIME_DECAY = 0.5


@dataclass(frozen=True)
class WordScore:
    word_id: str
    total: float
    weakness: float
    time_decay: float
    novelty: float
    difficulty_adjust: float
    random: float


def get_mode_weights(mode: str) -> dict:
    """Sub-score weights for a practice mode; unknown modes are fully random."""
    return MODE_WEIGHTS.get(mode, MODE_WEIGHTS['random'])


def calculate_novelty_score(attempts: int) -> float:
    if attempts <= 0:
        return 1.0
    if attempts < 3:
        return 0.8 - attempts * 0.15
    if attempts < 10:
        return 0.4 - attempts * 0.03
    return 0.1


def _transitions(romaji: str):
    for i in range(1, len(romaji)):
        yield f"{romaji[i - 1]}->{romaji[i]}"


def calculate_word_difficulty(romaji: str, weak_keys, weak_transitions) -> float:
    """Length plus the share of weak keys and weak transitions, capped at 1."""
    romaji = normalize_romaji(romaji)
    if not romaji:
        return 0.0

    difficulty = min(len(romaji) / 15, 0.3)
    weak_key_count = sum(1 for char in romaji if char in weak_keys)
    difficulty += weak_key_count / len(romaji) * 0.35
    if len(romaji) > 1:
        weak_transition_count = sum(1 for t in _transitions(romaji) if t in weak_transitions)
        difficulty += weak_transition_count / (len(romaji) - 1) * 0.35
    return min(difficulty, 1.0)


def calculate_weakness_score(word: Word, context: ScoringContext) -> float:
    romaji = normalize_romaji(word.romaji)
    raw = 0.0
    maximum = 0.0

    for transition in _transitions(romaji):
        raw += context.weak_transition_scores.get(transition, 0) * 2
        maximum += 4
    for char in romaji:
        raw += context.weak_key_scores.get(char, 0)
        maximum += 2

    raw += (1 - word.stats.accuracy / 100) * 3
    maximum += 3

    if maximum <= 0:
        return 0.0
    return min(max(raw / maximum, 0.0), 1.0)


def calculate_difficulty_adjustment(recent_correct_rate: float, difficulty: float) -> float:
    if recent_correct_rate > 0.9:
        return 0.8 if difficulty > 0.5 else 0.3
    if recent_correct_rate < 0.5:
        return 0.8 if difficulty < 0.4 else 0.3
    return 0.5


def apply_warmup_boost(word_index: int, total_words: int, difficulty: float) -> float:
    warmup_end = math.ceil(total_words * WARMUP_RATIO)
    if word_index < warmup_end:
        progress = word_index / warmup_end
        return 1.0 - progress * 0.5 if difficulty < WARMUP_EASY_THRESHOLD else 0.3
    return 0.5


def apply_duplication_penalty(word_id: str, history: SessionHistory) -> float:
    if word_id in history.recent_word_ids:
        return 0.0
    if word_id in history.session_word_ids:
        return SESSION_REPEAT_MULTIPLIER
    return 1.0


class WordScorer:
    """Combines five sub-scores into one priority per word."""

    def __init__(self, mastery: MasteryTracker | None = None,
                 rng: random.Random | None = None):
        self.mastery = mastery or MasteryTracker()
        self.rng = rng or random.Random()

    def score(self, word: Word, context: ScoringContext, history: SessionHistory,
              word_index: int = 0, total_words: int = 1,
              now: float | None = None) -> WordScore:
        now = now if now is not None else time.time()
        weights = get_mode_weights(context.practice_mode)

        difficulty = calculate_word_difficulty(
            word.romaji, context.weak_keys, context.weak_transitions)
        weakness = calculate_weakness_score(word, context)
        if context.srs_enabled:
            time_decay = self.mastery.calculate_time_decay_score(word.stats, now)
        else:
            time_decay = SRS_DISABLED_TIME_DECAY
        novelty = calculate_novelty_score(word.stats.attempts)
        difficulty_adjust = calculate_difficulty_adjustment(
            context.recent_correct_rate, difficulty)
        noise = self.rng.random()

        total = (weakness * weights['weakness']
                 + time_decay * weights['time_decay']
                 + novelty * weights['novelty']
                 + difficulty_adjust * weights['difficulty_adjust']
                 + noise * weights['random'])

        if context.warmup_enabled:
            total *= apply_warmup_boost(word_index, total_words, difficulty)
        total *= apply_duplication_penalty(word.id, history)

        return WordScore(
            word_id=word.id,
            total=total,
            weakness=weakness,
            time_decay=time_decay,
            novelty=novelty,
            difficulty_adjust=difficulty_adjust,
            random=noise
        )

    def score_all(self, words: list[Word], context: ScoringContext,
                  history: SessionHistory, word_index: int = 0,
                  total_words: int = 1, now: float | None = None) -> list[WordScore]:
        return [self.score(w, context, history, word_index, total_words, now) for w in words]
