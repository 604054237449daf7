"""Tests for the session state machine."""

import unittest

from core.models import Word, Settings
from core.presets import apply_preset
from core.session import (
    SessionEngine, KeyPressed, Backspace, TimerTick, ExitRequested,
    KeyAccepted, KeyRejected, WordStarted, WordFinished, SessionEnded,
    start_session, reduce, retry_words, word_outcomes
)

T0 = 1000.0


def make_words():
    return [
        Word('1', 'か', 'か', 'ka'),
        Word('2', 'し', 'し', 'shi'),
    ]


def of_type(effects, cls):
    return [e for e in effects if isinstance(e, cls)]


class TestSessionEngine(unittest.TestCase):

    def setUp(self):
        self.engine = SessionEngine()
        self.state, self.effects = self.engine.start_session(make_words(), Settings(), [], T0)

    def press(self, state, keys, start, step=0.2):
        effects = []
        for i, key in enumerate(keys):
            state, new_effects = self.engine.reduce(state, KeyPressed(key, start + i * step))
            effects.extend(new_effects)
        return state, effects

    def test_start_session(self):
        self.assertEqual(len(self.effects), 1)
        started = self.effects[0]
        self.assertIsInstance(started, WordStarted)
        self.assertEqual(started.word_id, '1')
        self.assertEqual(started.time_limit, 2.0)
        self.assertEqual(self.state.time_remaining, 2.0)
        self.assertEqual(self.state.current_word.romaji, 'ka')

    def test_full_session(self):
        state, effects = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.2))
        self.assertIsInstance(effects[0], KeyAccepted)

        state, effects = self.engine.reduce(state, KeyPressed('a', T0 + 0.4))
        finished = of_type(effects, WordFinished)[0].result
        self.assertTrue(finished.success)
        self.assertAlmostEqual(finished.completion_time, 400, places=3)
        self.assertAlmostEqual(finished.reaction_time, 200, places=3)
        self.assertEqual(of_type(effects, WordStarted)[0].word_id, '2')

        state, effects = self.engine.reduce(state, KeyPressed('x', T0 + 0.6))
        rejected = effects[0]
        self.assertIsInstance(rejected, KeyRejected)
        self.assertEqual(rejected.expected, 's')
        self.assertEqual(rejected.miss_count, 1)
        self.assertEqual(rejected.penalty, 0.1)
        self.assertEqual(state.time_remaining, 1.9)
        self.assertEqual(state.input, '')

        state, effects = self.press(state, 'si', T0 + 1.0)
        ended = of_type(effects, SessionEnded)[0]
        self.assertTrue(state.is_over)
        self.assertEqual(ended.score.kps, 4.2)
        self.assertEqual(ended.score.accuracy, 50)
        self.assertEqual(ended.score.total_keystrokes, 5)
        self.assertEqual(ended.score.completed_words, 2)
        self.assertEqual(ended.score.successful_words, 1)
        self.assertEqual(ended.score.total_words, 2)
        self.assertAlmostEqual(ended.score.played_at, T0 + 1.2)
        self.assertEqual(word_outcomes(state), [('1', True), ('2', False)])

    def test_keystroke_log(self):
        state, _ = self.press(self.state, 'ka', T0 + 0.2)
        state, _ = self.press(state, 'xsi', T0 + 0.6)
        log = [(k.key, k.actual_key, k.is_correct, k.previous_key) for k in state.keystrokes]
        self.assertEqual(log, [
            ('k', 'k', True, None),
            ('a', 'a', True, 'k'),
            ('s', 'x', False, None),
            ('s', 's', True, None),
            ('i', 'i', True, 's'),
        ])
        self.assertAlmostEqual(state.keystrokes[1].latency, 200, places=3)

    def test_reduce_does_not_mutate(self):
        before = self.state.to_dict()
        new_state, _ = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.1))
        self.assertEqual(self.state.to_dict(), before)
        self.assertEqual(self.state.keystrokes, [])
        self.assertEqual(new_state.input, 'k')

    def test_uppercase_key_is_accepted(self):
        state, effects = self.engine.reduce(self.state, KeyPressed('K', T0 + 0.1))
        self.assertIsInstance(effects[0], KeyAccepted)
        self.assertEqual(state.input, 'k')

    def test_backspace(self):
        state, _ = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.1))
        state, effects = self.engine.reduce(state, Backspace(T0 + 0.2))
        self.assertEqual(effects, [])
        self.assertEqual(state.input, '')

    def test_timeout(self):
        state, effects = self.engine.reduce(self.state, TimerTick(1.0))
        self.assertEqual(effects, [])
        self.assertEqual(state.time_remaining, 1.0)

        state, effects = self.engine.reduce(state, TimerTick(1.0))
        result = of_type(effects, WordFinished)[0].result
        self.assertFalse(result.completed)
        self.assertFalse(result.success)
        self.assertEqual(state.index, 1)
        self.assertEqual(state.time_remaining, 2.0)

    def test_small_ticks_count_down(self):
        state = self.state
        for _ in range(19):
            state, effects = self.engine.reduce(state, TimerTick())
            self.assertEqual(effects, [])
        state, effects = self.engine.reduce(state, TimerTick())
        self.assertEqual(len(of_type(effects, WordFinished)), 1)

    def test_penalty_floor(self):
        state = self.state
        for i in range(20):
            state, _ = self.engine.reduce(state, KeyPressed('z', T0 + i * 0.01))
        self.assertEqual(state.miss_count, 20)
        self.assertGreaterEqual(state.time_remaining, 0.5)
        self.assertFalse(state.is_over)

    def test_exit(self):
        state, _ = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.5))
        state, effects = self.engine.reduce(state, ExitRequested(T0 + 1.0))
        self.assertTrue(state.is_over)
        self.assertFalse(of_type(effects, WordFinished)[0].result.completed)
        score = of_type(effects, SessionEnded)[0].score
        self.assertEqual(score.total_words, 2)
        self.assertEqual(score.completed_words, 0)
        self.assertEqual(score.accuracy, 0)
        self.assertEqual(score.kps, 1.0)

    def test_events_after_end_are_ignored(self):
        state, _ = self.engine.reduce(self.state, ExitRequested(T0 + 1.0))
        same, effects = self.engine.reduce(state, KeyPressed('k', T0 + 2.0))
        self.assertIs(same, state)
        self.assertEqual(effects, [])

    def test_clock_never_rewinds(self):
        state, _ = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.5))
        state, _ = self.engine.reduce(state, KeyPressed('a', T0 + 0.1))
        self.assertEqual(state.clock, T0 + 0.5)

    def test_unknown_event(self):
        with self.assertRaises(TypeError):
            self.engine.reduce(self.state, object())

    def test_empty_session(self):
        state, effects = self.engine.start_session([], Settings(), [], T0)
        self.assertTrue(state.is_over)
        score = of_type(effects, SessionEnded)[0].score
        self.assertEqual(score.kps, 0.0)
        self.assertEqual(score.accuracy, 100)
        self.assertEqual(score.total_words, 0)

    def test_fixed_time_limit(self):
        settings = Settings(time_limit_mode='fixed', fixed_time_limit=6.0)
        state, effects = self.engine.start_session(make_words(), settings, [], T0)
        self.assertEqual(effects[0].time_limit, 6.0)

    def test_non_typing_keys_are_ignored(self):
        state, _ = self.engine.reduce(self.state, KeyPressed('k', T0 + 0.1))
        for key in (' ', '\t', '\n', 'Shift', ''):
            same, effects = self.engine.reduce(state, KeyPressed(key, T0 + 0.2))
            self.assertIs(same, state)
            self.assertEqual(effects, [])
        self.assertEqual(state.input, 'k')
        self.assertEqual(state.total_keystrokes, 1)
        self.assertEqual([k.key for k in state.keystrokes], ['k'])

    def test_space_at_word_start_is_not_a_miss(self):
        state, effects = self.engine.reduce(self.state, KeyPressed(' ', T0 + 0.1))
        self.assertEqual(effects, [])
        self.assertEqual(state.miss_count, 0)
        self.assertEqual(state.time_remaining, 2.0)

    def test_long_run_of_misses_on_expert(self):
        settings = apply_preset(Settings(), 'expert')
        state, _ = self.engine.start_session(make_words(), settings, [], T0)
        for i in range(1100):
            state, _ = self.engine.reduce(state, KeyPressed('q', T0 + i * 0.001))
        self.assertEqual(state.miss_count, 1100)
        self.assertGreaterEqual(state.time_remaining, settings.difficulty.min_time_after_penalty)

    def test_retry_words(self):
        state, _ = self.press(self.state, 'ka', T0 + 0.2)
        state, _ = self.press(state, 'xsi', T0 + 0.6)
        self.assertEqual([w.id for w in retry_words(state)], ['2'])

        state, _ = self.engine.start_session(make_words(), Settings(), [], T0)
        state, _ = self.engine.reduce(state, ExitRequested(T0 + 1.0))
        self.assertEqual([w.id for w in retry_words(state)], ['1'])

    def test_module_functions(self):
        state, _ = start_session(make_words(), Settings(), [], T0)
        state, effects = reduce(state, KeyPressed('k', T0 + 0.1))
        self.assertIsInstance(effects[0], KeyAccepted)
        self.assertEqual(effects[0].validation.expected_next, 'a')


if __name__ == '__main__':
    unittest.main()
