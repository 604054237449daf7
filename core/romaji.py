"""Romaji input matching.

A Japanese reading can be typed in more than one way: し is ``shi`` or
``si``, ん before a consonant is ``n``, ``nn`` or ``xn``. The matcher expands
a target romaji string into every accepted spelling and checks a learner's
partial input against them on every keystroke.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .utils import normalize_romaji

logger = logging.getLogger(__name__)

# Canonical form -> accepted spellings. The canonical spelling comes first.
ROMAJI_VARIANTS = {
    'shi': ['shi', 'si'],
    'sha': ['sha', 'sya'],
    'shu': ['shu', 'syu'],
    'sho': ['sho', 'syo'],
    'chi': ['chi', 'ti'],
    'cha': ['cha', 'tya', 'cya'],
    'chu': ['chu', 'tyu', 'cyu'],
    'cho': ['cho', 'tyo', 'cyo'],
    'tsu': ['tsu', 'tu'],
    'fu': ['fu', 'hu'],
    'ji': ['ji', 'zi'],
    'ja': ['ja', 'zya', 'jya'],
    'ju': ['ju', 'zyu', 'jyu'],
    'jo': ['jo', 'zyo', 'jyo'],
    'di': ['di', 'ji'],
    'du': ['du', 'zu'],
    'wo': ['wo', 'o'],
    # small kana
    'xtu': ['xtu', 'ltu', 'xtsu', 'ltsu'],
    'xya': ['xya', 'lya'],
    'xyu': ['xyu', 'lyu'],
    'xyo': ['xyo', 'lyo'],
    'xa': ['xa', 'la'],
    'xi': ['xi', 'li'],
    'xu': ['xu', 'lu'],
    'xe': ['xe', 'le'],
    'xo': ['xo', 'lo'],
}

# Longest first so that e.g. 'xtu' wins over 'xu'-style prefixes.
SORTED_CANONICAL_FORMS = sorted(ROMAJI_VARIANTS, key=len, reverse=True)

# After these, an 'n' is the start of a syllable (na, nya, ...), not ん.
SYLLABLE_CONTINUATIONS = frozenset('aiueoy')

NASAL_SPELLINGS = ('n', 'nn', 'xn')
EXPLICIT_NASAL_SPELLINGS = ('xn', 'nn')


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking a (partial) input against a target."""
    is_correct: bool
    progress: float
    matched_variant: Optional[str] = None
    expected_next: Optional[str] = None

    @property
    def is_valid_prefix(self) -> bool:
        return self.matched_variant is not None and self.progress > 0


def _is_moraic_nasal_position(next_char: str) -> bool:
    return next_char == '' or next_char not in SYLLABLE_CONTINUATIONS


class RomajiMatcher:
    """Expands romaji into accepted spellings and validates input against them.

    Expansions are memoized per normalized target on the instance; the
    cache is append-only and never invalidated, so one matcher can be
    shared for a whole process. ``clear_cache`` resets it.
    """

    def __init__(self):
        self._cache: dict[str, list[str]] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def expand(self, target: str) -> list[str]:
        """Return every accepted spelling of target, canonical spelling first."""
        return list(self._lookup(normalize_romaji(target)))

    def _lookup(self, target: str) -> list[str]:
        if target not in self._cache:
            logger.debug(f"Expanding romaji variants for {target!r}")
        return self._variations(target)

    def _variations(self, target: str) -> list[str]:
        cached = self._cache.get(target)
        if cached is not None:
            return cached
        variations = self._generate(target)
        self._cache[target] = variations
        return variations

    def _combine(self, heads, rest: str) -> list[str]:
        tails = self._variations(rest)
        return [head + tail for head in heads for tail in tails]

    def _generate(self, target: str) -> list[str]:
        if not target:
            return ['']

        # Explicit ん already spelled out in the target
        if target.startswith('xn'):
            rest = target[2:]
            if _is_moraic_nasal_position(rest[:1]):
                return self._combine(NASAL_SPELLINGS, rest)
            return self._combine(EXPLICIT_NASAL_SPELLINGS, rest)

        for canonical in SORTED_CANONICAL_FORMS:
            if target.startswith(canonical):
                return self._combine(ROMAJI_VARIANTS[canonical], target[len(canonical):])

        # Bare 'n' standing for ん
        if target[0] == 'n' and _is_moraic_nasal_position(target[1:2]):
            return self._combine(NASAL_SPELLINGS, target[1:])

        return self._combine((target[0],), target[1:])

    def get_matching_variation(self, target: str, user_input: str) -> str | None:
        """Return the first accepted spelling that starts with user_input.

        Empty input matches the canonical spelling; None means no spelling
        accepts the input.
        """
        variations = self._lookup(normalize_romaji(target))
        typed = normalize_romaji(user_input)
        if not typed:
            return variations[0] if variations else None
        for variation in variations:
            if variation.startswith(typed):
                return variation
        return None

    def validate(self, target: str, user_input: str) -> ValidationResult:
        """Check whether user_input is a prefix of some accepted spelling."""
        typed = normalize_romaji(user_input)
        variation = self.get_matching_variation(target, user_input)

        if not typed:
            expected = variation[0] if variation else None
            return ValidationResult(False, 0.0, variation, expected)

        if variation is None:
            return ValidationResult(False, 0.0)

        is_correct = typed == variation
        expected = None if is_correct else variation[len(typed)]
        return ValidationResult(is_correct, len(typed) / len(variation), variation, expected)

    def display_parts(self, target: str, user_input: str) -> tuple[str, str]:
        """Split the spelling being followed into (typed, remaining)."""
        typed = normalize_romaji(user_input)
        variation = self.get_matching_variation(target, user_input) or normalize_romaji(target)
        return typed, variation[len(typed):]


_default_matcher = RomajiMatcher()


def default_matcher() -> RomajiMatcher:
    return _default_matcher


def expand_variations(target: str) -> list[str]:
    return _default_matcher.expand(target)


def get_matching_variation(target: str, user_input: str) -> str | None:
    return _default_matcher.get_matching_variation(target, user_input)


def validate_romaji_input(target: str, user_input: str) -> ValidationResult:
    return _default_matcher.validate(target, user_input)
