"""FastAPI server for romatype."""

import logging
import os
import time

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional, Union

logger = logging.getLogger(__name__)

from core.interfaces import WordStore
from core.mastery import MasteryTracker
from core.models import DifficultyParams, GameScoreRecord, KeystrokeEvent, SessionHistory
from core.presets import apply_preset, recommend_difficulty
from core.romaji import default_matcher
from core.selection import WordSelector
from core.timing import TimeLimitCalculator, PenaltyCalculator
from core.utils import normalize_romaji
from core.weakness import WeaknessAnalyzer, top_confusions
from core.config import RECENT_SCORES_FOR_KPS

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class AddWordRequest(BaseModel):
    text: str
    reading: str = ""
    romaji: str


class SettingsUpdateRequest(BaseModel):
    word_count: Optional[Union[int, str]] = None
    practice_mode: Optional[str] = None
    srs_enabled: Optional[bool] = None
    warmup_enabled: Optional[bool] = None
    time_limit_mode: Optional[str] = None
    fixed_time_limit: Optional[float] = None
    min_time_limit: Optional[float] = None
    max_time_limit: Optional[float] = None
    # Difficulty parameters; setting any of these marks the settings as custom
    target_kps_multiplier: Optional[float] = None
    comfort_zone_ratio: Optional[float] = None
    min_time_limit_by_difficulty: Optional[float] = None
    miss_penalty_enabled: Optional[bool] = None
    base_penalty_percent: Optional[float] = None
    penalty_escalation_factor: Optional[float] = None
    max_penalty_percent: Optional[float] = None
    min_time_after_penalty: Optional[float] = None


class PresetRequest(BaseModel):
    preset: str


class SessionWordsRequest(BaseModel):
    count: Optional[Union[int, str]] = None   # int or 'all'; defaults to settings
    mode: Optional[str] = None                # defaults to settings
    history: Optional[dict] = None            # SessionHistory.to_dict()


class WordOutcome(BaseModel):
    word_id: str
    was_correct: bool


class KeystrokeModel(BaseModel):
    key: str
    actual_key: str
    is_correct: bool
    timestamp: float
    latency: float
    previous_key: Optional[str] = None


class ScoreModel(BaseModel):
    kps: float
    total_keystrokes: int
    accuracy: float
    completed_words: int
    successful_words: int
    total_words: int
    total_time: float
    played_at: Optional[float] = None


class SessionResultsRequest(BaseModel):
    outcomes: list[WordOutcome] = []
    keystrokes: list[KeystrokeModel] = []
    score: Optional[ScoreModel] = None


class ValidateRequest(BaseModel):
    target: str
    input: str


class ValidationResponse(BaseModel):
    is_correct: bool
    progress: float
    matched_variant: Optional[str]
    expected_next: Optional[str]
    typed: str
    remaining: str


# Global state (in production, use proper DI)
storage: WordStore = None
mastery = MasteryTracker()
analyzer = WeaknessAnalyzer()
time_limits = TimeLimitCalculator()
penalties = PenaltyCalculator()
selector = WordSelector()


app = FastAPI(title="romatype API", description="Adaptive romaji typing practice API")


@app.on_event("startup")
async def startup():
    """Initialize storage on startup."""
    global storage

    # File storage by default, set ROMATYPE_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('ROMATYPE_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info(f"Using file storage in {storage.state_dir}")


def get_storage() -> WordStore:
    if storage is None:
        raise HTTPException(status_code=503, detail="Storage not initialized")
    return storage


@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "romatype"}


# Words
@app.get("/api/words")
async def list_words():
    """List all words with their stats."""
    words = get_storage().list_words()
    return {
        "total": len(words),
        "words": [w.to_dict() for w in words]
    }


@app.post("/api/words")
async def add_word(request: AddWordRequest):
    """Add a word. Romaji must be non-empty."""
    romaji = normalize_romaji(request.romaji)
    if not romaji:
        raise HTTPException(status_code=400, detail="romaji must not be empty")
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="text must not be empty")

    word = get_storage().add_word(request.text.strip(), request.reading.strip(), romaji)
    logger.info(f"Added word {word.id}: {word.text} ({word.romaji})")
    return word.to_dict()


@app.delete("/api/words/{word_id}")
async def delete_word(word_id: str):
    if not get_storage().delete_word(word_id):
        raise HTTPException(status_code=404, detail=f"Word not found: {word_id}")
    logger.info(f"Deleted word {word_id}")
    return {"success": True}


# Settings
@app.get("/api/settings")
async def get_settings():
    return get_storage().load_settings().to_dict()


@app.put("/api/settings")
async def update_settings(request: SettingsUpdateRequest):
    """Update settings. Editing a difficulty parameter switches the preset to 'custom'."""
    store = get_storage()
    settings = store.load_settings()
    changes = request.model_dump(exclude_none=True)

    try:
        for name, value in changes.items():
            if name in DifficultyParams.FIELDS:
                settings.set_difficulty_param(name, value)
            else:
                setattr(settings, name, value)
        settings.validate()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    store.save_settings(settings)
    logger.info(f"Updated settings: {sorted(changes)}")
    return settings.to_dict()


@app.post("/api/settings/preset")
async def set_preset(request: PresetRequest):
    """Apply a named difficulty preset."""
    store = get_storage()
    try:
        settings = apply_preset(store.load_settings(), request.preset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    store.save_settings(settings)
    logger.info(f"Applied preset {request.preset}")
    return {
        **settings.to_dict(),
        "penalty_preview": penalties.penalty_preview(settings.difficulty)
    }


# Scores and stats
@app.get("/api/scores")
async def list_scores(limit: int = 10):
    scores = get_storage().list_recent_scores(limit)
    return {"scores": [s.to_dict() for s in scores]}


@app.get("/api/kps")
async def get_kps():
    """KPS status, target KPS and a recommended preset."""
    store = get_storage()
    scores = store.list_recent_scores(RECENT_SCORES_FOR_KPS)
    settings = store.load_settings()

    result = {
        **time_limits.kps_status(scores),
        "target": time_limits.target_kps_info(scores, settings.difficulty.target_kps_multiplier),
        "difficulty_preset": settings.difficulty_preset,
        "recommended_preset": None
    }
    if scores:
        latest = scores[0]
        result["recommended_preset"] = recommend_difficulty(latest.kps, latest.accuracy)
    return result


@app.get("/api/weakness")
async def get_weakness():
    """Ranked weak keys and transitions."""
    stats = get_storage().load_aggregated_key_stats()
    report = analyzer.rank(stats)
    return {
        "weak_keys": [
            {
                "key": w.id,
                "total_count": w.total_count,
                "error_rate": round(w.error_rate, 3),
                "avg_latency": round(w.avg_latency, 1),
                "score": round(w.score, 3),
                "confused_with": [list(pair) for pair in top_confusions(stats, w.id)]
            }
            for w in report.weak_keys
        ],
        "weak_transitions": [
            {
                "transition": w.id,
                "total_count": w.total_count,
                "error_rate": round(w.error_rate, 3),
                "avg_latency": round(w.avg_latency, 1),
                "score": round(w.score, 3)
            }
            for w in report.weak_transitions
        ],
        "last_updated": stats.last_updated
    }


# Session
@app.post("/api/session/words")
async def session_words(request: SessionWordsRequest):
    """Select and order the next batch of words with their time limits."""
    store = get_storage()
    try:
        settings = store.load_settings()
        words = store.list_words()
        scores = store.list_recent_scores(RECENT_SCORES_FOR_KPS)
        stats = store.load_aggregated_key_stats()

        mode = request.mode or settings.practice_mode
        count = request.count if request.count is not None else settings.word_count
        if isinstance(count, str) and count != 'all':
            raise HTTPException(status_code=400, detail="count must be an integer or 'all'")

        now = time.time()
        history = SessionHistory.from_dict(request.history) if request.history else SessionHistory(now)
        context = analyzer.build_scoring_context(
            stats, history, mode, settings.srs_enabled, settings.warmup_enabled)
        selected = selector.select(words, context, history, count, now)

        logger.info(f"Selected {len(selected)} of {len(words)} words ({mode})")
        return {
            "mode": mode,
            "words": [
                {
                    **w.to_dict(),
                    "time_limit": time_limits.calculate_word_time_limit(w, scores, settings)
                }
                for w in selected
            ],
            "settings": settings.to_dict(),
            "scores": [s.to_dict() for s in scores],
            "kps_status": time_limits.kps_status(scores)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in session_words: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")


@app.post("/api/session/results")
async def session_results(request: SessionResultsRequest):
    """Apply finished words to mastery, keystrokes to key stats, and store the score."""
    store = get_storage()
    try:
        now = time.time()
        updated = []
        for outcome in request.outcomes:
            word = store.get_word(outcome.word_id)
            if word is None:
                logger.warning(f"Skipping result for unknown word {outcome.word_id}")
                continue
            stats = mastery.apply_word_result(word.stats, outcome.was_correct, now)
            store.save_word_stats(word.id, stats)
            updated.append(word.with_stats(stats).to_dict())

        if request.keystrokes:
            events = [KeystrokeEvent.from_dict(k.model_dump()) for k in request.keystrokes]
            aggregated = analyzer.record(store.load_aggregated_key_stats(), events, now)
            store.save_aggregated_key_stats(aggregated)

        saved_score = None
        recommended = None
        if request.score is not None and request.score.total_words > 0:
            score = GameScoreRecord.from_dict(request.score.model_dump())
            if request.score.played_at is None:
                score = GameScoreRecord.from_dict({**score.to_dict(), 'played_at': now})
            saved_score = store.append_score(score)
            recommended = recommend_difficulty(saved_score.kps, saved_score.accuracy)

        logger.info(f"Applied {len(updated)} word results, {len(request.keystrokes)} keystrokes")
        return {
            "updated_words": updated,
            "score": saved_score.to_dict() if saved_score else None,
            "recommended_preset": recommended
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in session_results: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")


@app.post("/api/validate", response_model=ValidationResponse)
async def validate(request: ValidateRequest):
    """Check a (partial) input against a target romaji."""
    matcher = default_matcher()
    result = matcher.validate(request.target, request.input)
    typed, remaining = matcher.display_parts(request.target, request.input)
    return ValidationResponse(
        is_correct=result.is_correct,
        progress=result.progress,
        matched_variant=result.matched_variant,
        expected_next=result.expected_next,
        typed=typed,
        remaining=remaining
    )


@app.post("/api/reset")
async def reset():
    """Clear scores, key stats and word stats."""
    get_storage().reset_stats()
    logger.info("Statistics reset")
    return {"success": True}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
