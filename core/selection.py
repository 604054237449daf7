"""Practice-mode ordering of a candidate word pool."""

import logging
import math
import random
import time

from .config import WEAKNESS_PRIORITY_RATIO, WEAKNESS_PRIORITY_MIN
from .mastery import MasteryTracker
from .models import Word, SessionHistory
from .scoring import WordScorer
from .weakness import ScoringContext

logger = logging.getLogger(__name__)


class WordSelector:
    """Orders words for a session according to the practice mode."""

    def __init__(self, scorer: WordScorer | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.scorer = scorer or WordScorer(rng=self.rng)
        self.mastery = self.scorer.mastery

    def _shuffled(self, words: list[Word]) -> list[Word]:
        result = list(words)
        self.rng.shuffle(result)
        return result

    def order_random(self, words: list[Word]) -> list[Word]:
        return self._shuffled(words)

    def order_weakness_focus(self, words: list[Word]) -> list[Word]:
        """Worst-accuracy words first, shuffled within priority and remainder groups."""
        played = sorted((w for w in words if w.stats.attempts > 0),
                        key=lambda w: w.stats.accuracy)
        unplayed = self._shuffled([w for w in words if w.stats.attempts == 0])
        ranked = played + unplayed

        priority_count = min(
            max(math.ceil(len(ranked) * WEAKNESS_PRIORITY_RATIO), WEAKNESS_PRIORITY_MIN),
            len(ranked)
        )
        return self._shuffled(ranked[:priority_count]) + self._shuffled(ranked[priority_count:])

    def order_review(self, words: list[Word], now: float | None = None) -> list[Word]:
        """Overdue words first; both partitions shuffled."""
        now = now if now is not None else time.time()
        overdue = [w for w in words if self.mastery.is_due(w.stats, now)]
        rest = [w for w in words if not self.mastery.is_due(w.stats, now)]
        return self._shuffled(overdue) + self._shuffled(rest)

    def order_balanced(self, words: list[Word], context: ScoringContext,
                       history: SessionHistory | None = None,
                       count: int | None = None, now: float | None = None) -> list[Word]:
        """Fill each slot with the highest-scoring remaining word."""
        now = now if now is not None else time.time()
        working = history.copy() if history else SessionHistory(started_at=now)
        remaining = list(words)
        total = len(remaining) if count is None else min(count, len(remaining))
        ordered = []

        for index in range(total):
            scores = self.scorer.score_all(remaining, context, working, index, total, now)
            best = max(range(len(remaining)), key=lambda i: scores[i].total)
            if scores[best].total <= 0:
                best = self.rng.randrange(len(remaining))
            word = remaining.pop(best)
            ordered.append(word)
            working.mark_selected(word.id)

        return ordered

    def select(self, words: list[Word], context: ScoringContext,
               history: SessionHistory | None = None, count=None,
               now: float | None = None) -> list[Word]:
        """Order words for the context's mode, then keep the first count ('all' keeps every word)."""
        if not words:
            return []
        limit = None if count in (None, 'all') else max(int(count), 0)
        mode = context.practice_mode

        if mode == 'weakness-focus':
            ordered = self.order_weakness_focus(words)
        elif mode == 'review':
            ordered = self.order_review(words, now)
        elif mode == 'balanced':
            ordered = self.order_balanced(words, context, history, limit, now)
        else:
            ordered = self.order_random(words)

        logger.debug(f"Selected {len(ordered) if limit is None else min(limit, len(ordered))} "
                     f"of {len(words)} words in {mode} mode")
        return ordered if limit is None else ordered[:limit]
