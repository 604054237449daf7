"""Named difficulty presets and the skill check that recommends one."""

import logging

from .models import DifficultyParams, Settings

logger = logging.getLogger(__name__)

DIFFICULTY_PRESETS = {
    'easy': DifficultyParams(
        target_kps_multiplier=1.0, comfort_zone_ratio=1.15, min_time_limit_by_difficulty=2.5,
        miss_penalty_enabled=True, base_penalty_percent=3, penalty_escalation_factor=1.2,
        max_penalty_percent=15, min_time_after_penalty=1.0
    ),
    'normal': DifficultyParams(
        target_kps_multiplier=1.05, comfort_zone_ratio=1.0, min_time_limit_by_difficulty=2.0,
        miss_penalty_enabled=True, base_penalty_percent=5, penalty_escalation_factor=1.5,
        max_penalty_percent=30, min_time_after_penalty=0.5
    ),
    'hard': DifficultyParams(
        target_kps_multiplier=1.15, comfort_zone_ratio=1.0, min_time_limit_by_difficulty=1.8,
        miss_penalty_enabled=True, base_penalty_percent=8, penalty_escalation_factor=1.7,
        max_penalty_percent=40, min_time_after_penalty=0.3
    ),
    'expert': DifficultyParams(
        target_kps_multiplier=1.30, comfort_zone_ratio=0.95, min_time_limit_by_difficulty=1.5,
        miss_penalty_enabled=True, base_penalty_percent=10, penalty_escalation_factor=2.0,
        max_penalty_percent=50, min_time_after_penalty=0.2
    ),
}

PRESET_DESCRIPTIONS = {
    'easy': "For beginners. Generous time limits and gentle penalties.",
    'normal': "Balanced default, five percent faster than your current pace.",
    'hard': "For experienced typists. Tight limits and stricter penalties.",
    'expert': "Push your limit.",
}


def get_difficulty_params(preset: str) -> DifficultyParams:
    """Return a fresh copy of a preset's parameters."""
    if preset not in DIFFICULTY_PRESETS:
        raise ValueError(f"Unknown difficulty preset: {preset}")
    return DifficultyParams.from_dict(DIFFICULTY_PRESETS[preset].to_dict())


def apply_preset(settings: Settings, preset: str) -> Settings:
    """Return new settings carrying the preset's parameters and tag."""
    updated = Settings.from_dict(settings.to_dict())
    updated.difficulty = get_difficulty_params(preset)
    updated.difficulty_preset = preset
    logger.debug(f"Applied difficulty preset {preset}")
    return updated


def recommend_difficulty(kps: float, accuracy: float) -> str:
    """Suggest a preset from one session's speed and accuracy."""
    if accuracy < 60:
        return 'easy'
    if kps < 2.0:
        return 'easy'
    if kps < 4.0:
        return 'normal' if accuracy >= 80 else 'easy'
    if kps < 6.0:
        return 'hard' if accuracy >= 85 else 'normal'
    if kps < 8.0:
        return 'expert' if accuracy >= 90 else 'hard'
    return 'expert'
