from .models import (
    Word, WordStats, KeystrokeEvent, KeyStats, KeyTransitionStats,
    AggregatedStats, GameScoreRecord, DifficultyParams, Settings, SessionHistory
)
from .interfaces import WordStore
from .romaji import (
    RomajiMatcher, ValidationResult,
    validate_romaji_input, get_matching_variation, expand_variations
)
from .weakness import WeaknessAnalyzer, WeaknessReport, ScoringContext
from .mastery import MasteryTracker
from .scoring import WordScorer, WordScore
from .selection import WordSelector
from .timing import TimeLimitCalculator, PenaltyCalculator
from .presets import DIFFICULTY_PRESETS, apply_preset, recommend_difficulty
from .utils import round_half_up, normalize_romaji
from .config import (
    MAX_MASTERY_LEVEL, PRACTICE_MODES, DIFFICULTY_PRESET_NAMES, CUSTOM_PRESET
)

__all__ = [
    'Word', 'WordStats', 'KeystrokeEvent', 'KeyStats', 'KeyTransitionStats',
    'AggregatedStats', 'GameScoreRecord', 'DifficultyParams', 'Settings', 'SessionHistory',
    'WordStore',
    'RomajiMatcher', 'ValidationResult',
    'validate_romaji_input', 'get_matching_variation', 'expand_variations',
    'WeaknessAnalyzer', 'WeaknessReport', 'ScoringContext',
    'MasteryTracker',
    'WordScorer', 'WordScore',
    'WordSelector',
    'TimeLimitCalculator', 'PenaltyCalculator',
    'DIFFICULTY_PRESETS', 'apply_preset', 'recommend_difficulty',
    'round_half_up', 'normalize_romaji',
    'MAX_MASTERY_LEVEL', 'PRACTICE_MODES', 'DIFFICULTY_PRESET_NAMES', 'CUSTOM_PRESET'
]
