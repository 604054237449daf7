"""Per-key and per-transition weakness analysis."""

import logging
import time
from dataclasses import dataclass, field

from .config import (
    MIN_SAMPLE_COUNT, WEAK_KEY_LIMIT, WEAK_TRANSITION_LIMIT,
    LATENCY_NORMALIZER_MS, ERROR_RATE_WEIGHT, LATENCY_WEIGHT
)
from .models import (
    AggregatedStats, KeyStats, KeyTransitionStats, KeystrokeEvent, SessionHistory
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeakItem:
    """A ranked key ('k') or transition ('k->a')."""
    id: str
    total_count: int
    error_rate: float
    avg_latency: float
    score: float

    @property
    def context_score(self) -> float:
        """Score used inside ScoringContext, in [0, 2]."""
        return self.error_rate + min(self.avg_latency / LATENCY_NORMALIZER_MS, 1)


@dataclass(frozen=True)
class WeaknessReport:
    weak_keys: list = field(default_factory=list)
    weak_transitions: list = field(default_factory=list)


@dataclass(frozen=True)
class ScoringContext:
    """Per-session snapshot consulted by the word scorer. Built once, never mutated."""
    weak_keys: frozenset = frozenset()
    weak_transitions: frozenset = frozenset()
    weak_key_scores: dict = field(default_factory=dict)
    weak_transition_scores: dict = field(default_factory=dict)
    recent_correct_rate: float = 0.75
    practice_mode: str = 'balanced'
    srs_enabled: bool = True
    warmup_enabled: bool = True


def composite_score(error_rate: float, avg_latency: float) -> float:
    return (error_rate * ERROR_RATE_WEIGHT
            + min(avg_latency / LATENCY_NORMALIZER_MS, 1) * LATENCY_WEIGHT)


class WeaknessAnalyzer:
    """Aggregates keystrokes and ranks the learner's weakest keys and transitions."""

    def __init__(self, min_samples: int = MIN_SAMPLE_COUNT,
                 key_limit: int = WEAK_KEY_LIMIT,
                 transition_limit: int = WEAK_TRANSITION_LIMIT):
        self.min_samples = min_samples
        self.key_limit = key_limit
        self.transition_limit = transition_limit

    def record(self, stats: AggregatedStats | None, keystrokes: list[KeystrokeEvent],
               now: float | None = None) -> AggregatedStats:
        """Fold keystrokes into a copy of stats and return it."""
        updated = stats.copy() if stats else AggregatedStats()
        if not keystrokes:
            return updated

        for stroke in keystrokes:
            key_stats = updated.key_stats.get(stroke.key)
            if key_stats is None:
                key_stats = KeyStats(stroke.key)
                updated.key_stats[stroke.key] = key_stats
            key_stats.total_count += 1
            key_stats.total_latency += stroke.latency
            if not stroke.is_correct:
                key_stats.error_count += 1
                confused = key_stats.confused_with
                confused[stroke.actual_key] = confused.get(stroke.actual_key, 0) + 1

            if stroke.previous_key is None:
                continue
            transition_id = KeyTransitionStats.make_id(stroke.previous_key, stroke.key)
            transition = updated.transition_stats.get(transition_id)
            if transition is None:
                transition = KeyTransitionStats(stroke.previous_key, stroke.key)
                updated.transition_stats[transition_id] = transition
            transition.total_count += 1
            transition.total_latency += stroke.latency
            if not stroke.is_correct:
                transition.error_count += 1

        updated.last_updated = now if now is not None else time.time()
        return updated

    def _rank(self, items, limit: int) -> list[WeakItem]:
        ranked = []
        for item_id, item in items:
            if item.total_count < self.min_samples:
                continue
            ranked.append(WeakItem(
                id=item_id,
                total_count=item.total_count,
                error_rate=item.error_rate,
                avg_latency=item.avg_latency,
                score=composite_score(item.error_rate, item.avg_latency)
            ))
        ranked.sort(key=lambda w: w.score, reverse=True)
        return ranked[:limit]

    def rank(self, stats: AggregatedStats | None) -> WeaknessReport:
        if stats is None:
            return WeaknessReport()
        report = WeaknessReport(
            weak_keys=self._rank(stats.key_stats.items(), self.key_limit),
            weak_transitions=self._rank(stats.transition_stats.items(), self.transition_limit)
        )
        logger.debug(f"Ranked {len(report.weak_keys)} weak keys, "
                     f"{len(report.weak_transitions)} weak transitions")
        return report

    def build_scoring_context(self, stats: AggregatedStats | None,
                              history: SessionHistory | None = None,
                              practice_mode: str = 'balanced',
                              srs_enabled: bool = True,
                              warmup_enabled: bool = True) -> ScoringContext:
        report = self.rank(stats)
        history = history or SessionHistory()
        return ScoringContext(
            weak_keys=frozenset(w.id for w in report.weak_keys),
            weak_transitions=frozenset(w.id for w in report.weak_transitions),
            weak_key_scores={w.id: w.context_score for w in report.weak_keys},
            weak_transition_scores={w.id: w.context_score for w in report.weak_transitions},
            recent_correct_rate=history.recent_correct_rate(),
            practice_mode=practice_mode,
            srs_enabled=srs_enabled,
            warmup_enabled=warmup_enabled
        )


def top_confusions(stats: AggregatedStats, key: str, limit: int = 3) -> list[tuple[str, int]]:
    """Keys most often typed instead of key."""
    key_stats = stats.key_stats.get(key)
    if key_stats is None:
        return []
    pairs = sorted(key_stats.confused_with.items(), key=lambda kv: kv[1], reverse=True)
    return pairs[:limit]
