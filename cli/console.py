"""Console UI for romatype."""

import logging
import time

from core.models import GameScoreRecord, Settings, Word
from core.romaji import default_matcher
from core.session import (
    SessionEngine, KeyPressed, TimerTick, ExitRequested,
    KeyRejected, WordFinished, WordStarted, retry_words, word_outcomes
)
from cli.api_client import RomatypeAPIClient

logger = logging.getLogger(__name__)


class ConsoleUI:
    """Line-based console client.

    Each line typed is replayed into the session one character at a time,
    with the time spent on the line spread evenly across its characters.
    """

    def __init__(self, client: RomatypeAPIClient, count=None, mode: str = None,
                 save: bool = True, engine: SessionEngine = None, input_func=input):
        self.client = client
        self.count = count
        self.mode = mode
        self.save = save
        self.engine = engine or SessionEngine()
        self.input_func = input_func
        self.matcher = default_matcher()

    def print_word(self, word: Word, index: int, total: int, time_limit: float):
        print('\n' + '=' * 40)
        print(f'[{index + 1}/{total}]  {word.text}  ({word.reading})')
        print(f'Time: {time_limit:.1f}s')
        print('=' * 40)

    def print_effects(self, effects: list):
        for effect in effects:
            if isinstance(effect, KeyRejected):
                expected = f"expected '{effect.expected}', " if effect.expected else ''
                print(f"  miss #{effect.miss_count}: {expected}-{effect.penalty:.2f}s")
            elif isinstance(effect, WordFinished):
                result = effect.result
                if result.success:
                    print(f"  OK  {result.romaji}  ({result.completion_time / 1000:.1f}s)")
                elif result.completed:
                    print(f"  done with {result.miss_count} miss(es)  {result.romaji}")
                else:
                    print(f"  time up  {result.romaji}")

    def print_summary(self, score: GameScoreRecord, kps_status: dict):
        print('\n' + '=' * 40)
        print('SESSION SUMMARY')
        print('=' * 40)
        print(f'KPS: {score.kps}  (average {kps_status["average_kps"]}, {kps_status["label"]})')
        print(f'Accuracy: {score.accuracy:.0f}%')
        print(f'Words: {score.successful_words} perfect, {score.completed_words} completed, '
              f'{score.total_words} total')
        print(f'Keystrokes: {score.total_keystrokes} in {score.total_time:.1f}s')
        print('=' * 40 + '\n')

    def _feed_line(self, state, line: str, elapsed: float):
        """Replay one typed line; characters after the word finishes are dropped."""
        effects = []
        chars = [c for c in line if not c.isspace()]
        if not chars:
            state, tick_effects = self.engine.reduce(state, TimerTick(elapsed))
            return state, tick_effects

        step = elapsed / len(chars)
        for char in chars:
            state, tick_effects = self.engine.reduce(state, TimerTick(step))
            effects.extend(tick_effects)
            if tick_effects:
                return state, effects
            state, key_effects = self.engine.reduce(state, KeyPressed(char, state.clock))
            effects.extend(key_effects)
            if any(isinstance(e, WordFinished) for e in key_effects):
                return state, effects
        return state, effects

    def play(self, data: dict):
        """Play one session from a /api/session/words response. Returns the final state."""
        words = [Word.from_dict(w) for w in data['words']]
        settings = Settings.from_dict(data['settings'])
        scores = [GameScoreRecord.from_dict(s) for s in data['scores']]
        return self.play_words(words, settings, scores)

    def play_words(self, words: list[Word], settings: Settings, scores: list[GameScoreRecord]):
        state, effects = self.engine.start_session(words, settings, scores, time.time())
        while not state.is_over:
            started = next((e for e in effects if isinstance(e, WordStarted)), None)
            if started is not None:
                self.print_word(words[started.index], started.index, len(words), started.time_limit)

            word = state.current_word
            typed, remaining = self.matcher.display_parts(word.romaji, state.input)
            prompt = f'{typed}> ' if typed else '> '
            before = time.monotonic()
            line = self.input_func(prompt).strip()
            elapsed = time.monotonic() - before

            if line.lower() == 'exit':
                state, effects = self.engine.reduce(state, ExitRequested(state.clock + elapsed))
                self.print_effects(effects)
                break
            if line == '':
                print(f'  next: {remaining}  ({state.time_remaining:.1f}s left)')

            state, effects = self._feed_line(state, line, elapsed)
            self.print_effects(effects)

        return state

    def submit(self, state):
        """Send outcomes, keystrokes and score. A failed save is reported, not retried."""
        if not self.save or not state.results:
            return None
        outcomes = [{'word_id': word_id, 'was_correct': ok}
                    for word_id, ok in word_outcomes(state)]
        keystrokes = [k.to_dict() for k in state.keystrokes]
        try:
            response = self.client.submit_results(outcomes, keystrokes, state.score.to_dict())
        except Exception as e:
            logger.error(f"Failed to save session: {e}")
            print(f"Error: could not save results: {e}")
            return None
        if response.get('recommended_preset'):
            print(f"Recommended difficulty: {response['recommended_preset']}")
        return response

    def run(self):
        """Run one practice session."""
        try:
            health = self.client.health_check()
            print(f"Connected to romatype server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        try:
            data = self.client.get_session_words(self.count, self.mode)
        except Exception as e:
            print(f"Error getting words: {e}")
            return

        if not data['words']:
            print('No words found. Seed some with: python -m scripts.seed_words')
            return

        print(f"\nMode: {data['mode']}, {len(data['words'])} words. "
              f"Type the romaji and press Enter; 'exit' to stop.")
        state = self.play(data)
        while state.score is not None:
            self.print_summary(state.score, data['kps_status'])
            self.submit(state)
            state = self.retry(state)
            if state is None:
                return

    def retry(self, state):
        """Offer to replay the words missed in a finished session. Returns the new state or None."""
        missed = retry_words(state)
        if not missed:
            return None
        answer = self.input_func(f'Retry {len(missed)} missed word(s)? [y/N] ').strip().lower()
        if answer not in ('y', 'yes'):
            return None
        return self.play_words(missed, state.settings, state.scores)

