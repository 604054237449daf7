"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .models import AggregatedStats, GameScoreRecord, Settings, Word, WordStats


class WordStore(ABC):
    """Abstract base class for word, score and stats storage.

    There is a single learner per store.
    """

    @abstractmethod
    def list_words(self) -> list[Word]:
        """Return every word with its current stats."""
        pass

    @abstractmethod
    def get_word(self, word_id: str) -> Word | None:
        """Return one word or None if not found."""
        pass

    @abstractmethod
    def add_word(self, text: str, reading: str, romaji: str) -> Word:
        """Create a word with fresh stats and return it."""
        pass

    @abstractmethod
    def delete_word(self, word_id: str) -> bool:
        """Delete a word. Returns True if it existed."""
        pass

    @abstractmethod
    def save_word_stats(self, word_id: str, stats: WordStats) -> None:
        """Replace a word's stats."""
        pass

    @abstractmethod
    def list_recent_scores(self, n: int = 10) -> list[GameScoreRecord]:
        """Return up to n most recent scores, newest first."""
        pass

    @abstractmethod
    def append_score(self, score: GameScoreRecord) -> GameScoreRecord:
        """Store a finished session's score. Returns it with its id set."""
        pass

    @abstractmethod
    def load_aggregated_key_stats(self) -> AggregatedStats:
        """Load key and transition aggregates (empty if none yet)."""
        pass

    @abstractmethod
    def save_aggregated_key_stats(self, stats: AggregatedStats) -> None:
        """Replace key and transition aggregates."""
        pass

    @abstractmethod
    def load_settings(self) -> Settings:
        """Load learner settings, defaults if never saved."""
        pass

    @abstractmethod
    def save_settings(self, settings: Settings) -> None:
        """Save learner settings."""
        pass

    @abstractmethod
    def reset_stats(self) -> None:
        """Clear scores, key stats and every word's stats. Words are kept."""
        pass
