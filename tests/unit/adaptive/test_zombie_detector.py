"""
Tests for zombie scoring, classification and remediation choice
"""
import itertools

import pytest

from hemisphere.adaptive.zombie import SIGNAL_WEIGHTS, classify, detect, remediate, score
from hemisphere.core.exceptions import InvalidThresholdError
from hemisphere.schemas.remediation import RemediationType, ZombieSignals

SIGNAL_NAMES = ["lh_rh_divergence", "format_dependence", "speed_without_depth", "stalled_difficulty"]


def _signals(*active):
    return ZombieSignals(**{name: True for name in active})


def _all_combinations():
    for flags in itertools.product([False, True], repeat=4):
        yield ZombieSignals(**dict(zip(SIGNAL_NAMES, flags)))


class TestScore:

    def test_weights(self):
        assert SIGNAL_WEIGHTS == {
            "lh_rh_divergence": 0.4,
            "format_dependence": 0.3,
            "speed_without_depth": 0.2,
            "stalled_difficulty": 0.1,
        }

    def test_no_signals(self):
        assert score(ZombieSignals()) == 0.0

    def test_all_signals(self):
        assert score(_signals(*SIGNAL_NAMES)) == 1.0

    @pytest.mark.parametrize("name,weight", list(SIGNAL_WEIGHTS.items()))
    def test_single_signal(self, name, weight):
        assert score(_signals(name)) == pytest.approx(weight)

    def test_range(self):
        for signals in _all_combinations():
            assert 0.0 <= score(signals) <= 1.0


class TestClassify:

    def test_threshold_inclusive(self):
        """0.4 + 0.1 lands exactly on the default threshold"""
        assert classify(_signals("lh_rh_divergence", "stalled_difficulty"))
        assert classify(_signals("format_dependence", "speed_without_depth"))

    def test_below_threshold(self):
        assert not classify(_signals("lh_rh_divergence"))
        assert not classify(_signals("format_dependence", "stalled_difficulty"))

    def test_zero_threshold_flags_everything(self):
        assert classify(ZombieSignals(), threshold=0.0)

    def test_custom_threshold(self):
        assert classify(_signals("lh_rh_divergence"), threshold=0.4)
        assert not classify(_signals(*SIGNAL_NAMES[1:]), threshold=0.7)

    @pytest.mark.parametrize("threshold", [-0.1, 1.1, "0.5", None])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(InvalidThresholdError):
            classify(ZombieSignals(), threshold=threshold)


class TestRemediate:

    def test_precedence(self):
        assert remediate(_signals(*SIGNAL_NAMES)) == RemediationType.ELABORATION
        assert remediate(_signals("format_dependence", "speed_without_depth")) == RemediationType.FORMAT_SHIFT
        assert remediate(_signals("speed_without_depth", "stalled_difficulty")) == RemediationType.NOVEL_CONTEXT
        assert remediate(_signals("stalled_difficulty")) == RemediationType.ENCODING_RESET

    def test_no_signals_is_encoding_reset(self):
        assert remediate(ZombieSignals()) == RemediationType.ENCODING_RESET

    def test_always_one_type(self):
        for signals in _all_combinations():
            assert isinstance(remediate(signals), RemediationType)


class TestDetect:

    def test_decision(self):
        decision = detect(_signals("lh_rh_divergence", "format_dependence"))

        assert decision.score == pytest.approx(0.7)
        assert decision.is_zombie
        assert decision.remediation_type == RemediationType.ELABORATION

    def test_not_zombie_still_has_type(self):
        decision = detect(_signals("speed_without_depth"))

        assert not decision.is_zombie
        assert decision.remediation_type == RemediationType.NOVEL_CONTEXT
