"""Adaptive per-word time limits and miss penalties."""

import logging
import math

from .config import DEFAULT_KPS, RECENT_SCORES_FOR_KPS
from .models import DifficultyParams, GameScoreRecord, Settings, Word
from .utils import clamp, normalize_romaji, round_half_up

logger = logging.getLogger(__name__)


def _valid_scores(scores: list[GameScoreRecord]) -> list[GameScoreRecord]:
    return [s for s in scores if s.is_valid_for_kps]


def keystroke_count(word: Word | str) -> int:
    romaji = word.romaji if isinstance(word, Word) else word
    return len(normalize_romaji(romaji))


class TimeLimitCalculator:
    """Derives a countdown for one word from the learner's recent KPS."""

    def __init__(self, history_size: int = RECENT_SCORES_FOR_KPS, default_kps: float = DEFAULT_KPS):
        self.history_size = history_size
        self.default_kps = default_kps

    def average_kps(self, scores: list[GameScoreRecord]) -> float:
        recent = sorted(_valid_scores(scores), key=lambda s: s.played_at, reverse=True)
        recent = recent[:self.history_size]
        if not recent:
            return self.default_kps
        return sum(s.kps for s in recent) / len(recent)

    def confidence(self, scores: list[GameScoreRecord]) -> float:
        valid = len(_valid_scores(scores))
        if valid == 0:
            return 0.0
        return min(valid / self.history_size, 1.0)

    @staticmethod
    def target_kps(average_kps: float, multiplier: float) -> float:
        return round_half_up(average_kps * multiplier, 1)

    def calculate_word_time_limit(self, word: Word | str, scores: list[GameScoreRecord],
                                  settings: Settings) -> float:
        """Seconds allotted to type word."""
        if settings.time_limit_mode == 'fixed':
            return settings.fixed_time_limit

        params = settings.difficulty
        target = self.target_kps(self.average_kps(scores), params.target_kps_multiplier)
        if target <= 0:
            seconds = params.min_time_limit_by_difficulty
        else:
            seconds = keystroke_count(word) / target * params.comfort_zone_ratio

        low = min(max(settings.min_time_limit, params.min_time_limit_by_difficulty),
                  settings.max_time_limit)
        seconds = round_half_up(clamp(seconds, low, settings.max_time_limit), 1)
        # bounds win over tenths when they are not multiples of 0.1
        return clamp(seconds, low, settings.max_time_limit)

    def kps_status(self, scores: list[GameScoreRecord]) -> dict:
        confidence = self.confidence(scores)
        if confidence < 0.3:
            label = 'collecting'
        elif confidence < 0.7:
            label = 'learning'
        else:
            label = 'stable'
        return {
            'average_kps': round_half_up(self.average_kps(scores), 1),
            'confidence': round_half_up(confidence * 100),
            'games_played': sum(1 for s in scores if s.kps > 0),
            'label': label
        }

    def target_kps_info(self, scores: list[GameScoreRecord], multiplier: float) -> dict:
        average = self.average_kps(scores)
        percent_diff = round_half_up((multiplier - 1) * 100)
        return {
            'average_kps': round_half_up(average, 1),
            'target_kps': self.target_kps(average, multiplier),
            'percent_diff': abs(percent_diff),
            'is_faster': percent_diff > 0
        }


class PenaltyCalculator:
    """Converts an in-word miss into seconds taken off the countdown."""

    @staticmethod
    def penalty_percent(params: DifficultyParams, miss_count: int) -> float:
        try:
            escalation = params.penalty_escalation_factor ** (miss_count - 1)
        except OverflowError:
            return params.max_penalty_percent
        return min(params.base_penalty_percent * escalation, params.max_penalty_percent)

    def calculate_miss_penalty(self, miss_count: int, time_remaining: float,
                               params: DifficultyParams) -> float:
        if not params.miss_penalty_enabled or miss_count < 1:
            return 0.0

        penalty = time_remaining * self.penalty_percent(params, miss_count) / 100
        allowed = max(0.0, time_remaining - params.min_time_after_penalty)
        penalty = round_half_up(min(penalty, allowed), 2)
        if penalty > allowed:
            # rounding must not push the countdown under the floor
            penalty = math.floor(allowed * 100) / 100
        return penalty

    def penalty_preview(self, params: DifficultyParams, count: int = 5) -> list[float]:
        return [round_half_up(self.penalty_percent(params, i), 1) for i in range(1, count + 1)]
