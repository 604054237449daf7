"""Configuration constants for romatype."""

# Mastery / SRS
MAX_MASTERY_LEVEL = 5
BASE_INTERVALS_HOURS = [0, 1, 6, 24, 72, 168, 336]  # indexed by level + 1
PROMOTION_STREAK = 2          # consecutive correct answers needed to level up
DEMOTION_STEP = 2             # levels lost on a miss

# Weakness analysis
MIN_SAMPLE_COUNT = 3          # observations before a key/transition can be "weak"
WEAK_KEY_LIMIT = 15
WEAK_TRANSITION_LIMIT = 20
LATENCY_NORMALIZER_MS = 500
ERROR_RATE_WEIGHT = 0.6
LATENCY_WEIGHT = 0.4

# Session history
RECENT_RESULTS_COUNT = 10
RECENT_WORDS_COUNT = 5
DEFAULT_RECENT_CORRECT_RATE = 0.75

# Warmup / duplication
WARMUP_RATIO = 0.15
WARMUP_EASY_THRESHOLD = 0.4
SESSION_REPEAT_MULTIPLIER = 0.7

# Weakness-focus selection
WEAKNESS_PRIORITY_RATIO = 0.3
WEAKNESS_PRIORITY_MIN = 5

# Practice modes
PRACTICE_MODES = ('random', 'weakness-focus', 'review', 'balanced')
DEFAULT_PRACTICE_MODE = 'balanced'

MODE_WEIGHTS = {
    'weakness-focus': {
        'weakness': 0.85, 'time_decay': 0.0, 'novelty': 0.0,
        'difficulty_adjust': 0.0, 'random': 0.15
    },
    'review': {
        'weakness': 0.0, 'time_decay': 0.90, 'novelty': 0.0,
        'difficulty_adjust': 0.0, 'random': 0.10
    },
    'random': {
        'weakness': 0.0, 'time_decay': 0.0, 'novelty': 0.0,
        'difficulty_adjust': 0.0, 'random': 1.0
    },
    'balanced': {
        'weakness': 0.30, 'time_decay': 0.25, 'novelty': 0.15,
        'difficulty_adjust': 0.15, 'random': 0.15
    },
}

# Adaptive time limits
DEFAULT_KPS = 3.0
RECENT_SCORES_FOR_KPS = 10
TIMER_TICK_SECONDS = 0.1
DEFAULT_MIN_TIME_LIMIT = 2.0
DEFAULT_MAX_TIME_LIMIT = 15.0
DEFAULT_FIXED_TIME_LIMIT = 10.0
TIME_LIMIT_MODES = ('adaptive', 'fixed')

# Difficulty
DIFFICULTY_PRESET_NAMES = ('easy', 'normal', 'hard', 'expert')
CUSTOM_PRESET = 'custom'
DEFAULT_DIFFICULTY_PRESET = 'normal'
DEFAULT_WORD_COUNT = 20
