from collections import deque

import pytest

from analysis.smoother import TemporalSmoother
from conftest import make_assessment


@pytest.fixture
def smoother():
    return TemporalSmoother({"alpha": 0.7, "window": 10, "min_history": 3})


def test_short_history_passes_through(smoother):
    current = make_assessment(42.0)

    assert smoother.smooth([], current) is current
    assert smoother.smooth([make_assessment(90.0)] * 2, current) is current


def test_invalid_assessment_passes_through(smoother):
    current = make_assessment(0.0, confidence=0.0, valid=False)

    assert smoother.smooth([make_assessment(90.0)] * 5, current) is current


def test_blends_with_window_mean(smoother):
    history = [make_assessment(50.0)] * 3
    current = make_assessment(100.0, forward_head=True)

    result = smoother.smooth(history, current)

    assert result.overall_score == pytest.approx(0.7 * 100 + 0.3 * 50)
    assert result.valid is True
    assert result.confidence == current.confidence
    assert result.metrics == current.metrics


def test_only_recent_window_and_valid_entries_count(smoother):
    history = (
        [make_assessment(0.0)] * 5
        + [make_assessment(80.0)] * 10
        + [make_assessment(0.0, confidence=0.0, valid=False)] * 3
    )

    result = smoother.smooth(history, make_assessment(80.0))

    # 最近10条里只有7条有效，均为80
    assert result.overall_score == pytest.approx(80.0)


def test_constant_stream_is_a_fixed_point(smoother):
    history = deque(maxlen=10)
    for _ in range(25):
        smoothed = smoother.smooth(history, make_assessment(70.0))
        history.append(smoothed)
        assert smoothed.overall_score == pytest.approx(70.0, abs=1e-9)


def test_constant_stream_converges_after_disturbance(smoother):
    history = deque([make_assessment(s) for s in (20.0, 120.0, 40.0)], maxlen=10)
    errors = []
    for _ in range(50):
        smoothed = smoother.smooth(history, make_assessment(70.0))
        history.append(smoothed)
        errors.append(abs(smoothed.overall_score - 70.0))

    assert errors[-1] < 0.2
    assert errors[-1] < errors[0]
