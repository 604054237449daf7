"""Spaced-repetition state for individual words."""

import logging
import time

from .config import (
    MAX_MASTERY_LEVEL, BASE_INTERVALS_HOURS, PROMOTION_STREAK, DEMOTION_STEP
)
from .models import WordStats
from .utils import clamp

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


class MasteryTracker:
    """Per-word SRS state machine.

    Levels run from 0 to MAX_MASTERY_LEVEL. A correct answer promotes the
    word once the streak reaches PROMOTION_STREAK (the first success from
    level 0 always promotes); a miss drops DEMOTION_STEP levels and resets
    the streak.
    """

    def __init__(self, intervals_hours: list[float] | None = None,
                 max_level: int = MAX_MASTERY_LEVEL):
        self.intervals_hours = list(intervals_hours or BASE_INTERVALS_HOURS)
        self.max_level = max_level

    def clamp_level(self, level) -> int:
        return int(clamp(level, 0, self.max_level))

    def update_mastery_level(self, level: int, consecutive_correct: int,
                             was_correct: bool) -> tuple[int, int]:
        """Return (new_level, new_consecutive_correct)."""
        level = self.clamp_level(level)
        consecutive_correct = max(0, consecutive_correct)

        if not was_correct:
            return max(level - DEMOTION_STEP, 0), 0

        consecutive_correct += 1
        if consecutive_correct >= PROMOTION_STREAK or level == 0:
            return min(level + 1, self.max_level), 0
        return level, consecutive_correct

    def calculate_next_interval(self, level: int) -> float:
        """Review interval for a level, in seconds."""
        index = self.clamp_level(level) + 1
        if index >= len(self.intervals_hours):
            index = len(self.intervals_hours) - 1
        return self.intervals_hours[index] * SECONDS_PER_HOUR

    def calculate_next_review_at(self, level: int, completed_at: float) -> float:
        return completed_at + self.calculate_next_interval(level)

    def calculate_time_decay_score(self, stats: WordStats, now: float | None = None) -> float:
        """How overdue a word is, in [0.1, 1.0]. Unplayed words score 1.0."""
        if not stats.has_played:
            return 1.0
        now = now if now is not None else time.time()
        interval = self.calculate_next_interval(stats.mastery_level)
        if interval <= 0:
            return 1.0

        ratio = max(now - stats.last_played, 0) / interval
        if ratio < 0.5:
            return 0.1 + ratio * 0.2
        if ratio < 1.0:
            return 0.3 + (ratio - 0.5) * 1.4
        if ratio < 2.0:
            return 1.0
        return 0.8

    def is_due(self, stats: WordStats, now: float | None = None) -> bool:
        now = now if now is not None else time.time()
        return stats.has_played and stats.next_review_at <= now

    def apply_word_result(self, stats: WordStats, was_correct: bool,
                          now: float | None = None) -> WordStats:
        """Return new stats after one finished word. The input is not modified."""
        now = now if now is not None else time.time()
        correct = stats.correct + (1 if was_correct else 0)
        miss = stats.miss + (0 if was_correct else 1)
        total = correct + miss
        accuracy = correct / total * 100 if total > 0 else 100.0

        level, streak = self.update_mastery_level(
            stats.mastery_level, stats.consecutive_correct, was_correct)
        logger.debug(f"Mastery {stats.mastery_level} -> {level} (correct={was_correct})")

        return WordStats(
            correct=correct,
            miss=miss,
            last_played=now,
            accuracy=accuracy,
            created_at=stats.created_at,
            mastery_level=level,
            next_review_at=self.calculate_next_review_at(level, now),
            consecutive_correct=streak
        )
