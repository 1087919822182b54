import pytest

from analysis.calibration import CalibrationTracker
from conftest import keypoint, upright_keypoints, without
from utils.data_structures import Frame


def test_first_complete_frame_sets_baseline(upright_frame):
    tracker = CalibrationTracker()

    baseline = tracker.try_calibrate(upright_frame)

    assert baseline is not None
    assert tracker.is_calibrated
    assert baseline.neck_angle == pytest.approx(0.0, abs=1e-6)
    assert baseline.shoulder_slope == pytest.approx(0.0)
    assert baseline.torso_angle == pytest.approx(0.0, abs=1e-6)


def test_baseline_is_frozen_once_set(upright_frame, slouched_frame):
    tracker = CalibrationTracker()
    first = tracker.try_calibrate(upright_frame)

    assert tracker.try_calibrate(slouched_frame) is first
    assert tracker.baseline is first


@pytest.mark.parametrize("missing", ["nose", "left_shoulder", "right_shoulder", "left_hip", "right_hip"])
def test_incomplete_frame_does_not_calibrate(missing):
    tracker = CalibrationTracker()
    frame = Frame.from_keypoints(without(upright_keypoints(), missing))

    for _ in range(20):
        assert tracker.try_calibrate(frame) is None
    assert tracker.baseline is None


def test_low_confidence_frame_does_not_calibrate():
    tracker = CalibrationTracker()
    keypoints = upright_keypoints()
    keypoints[-1] = keypoint("right_hip", 0.58, 0.75, score=0.45)

    assert tracker.try_calibrate(Frame.from_keypoints(keypoints)) is None


def test_multi_frame_calibration_averages_samples(upright_frame, slouched_frame):
    tracker = CalibrationTracker({"required_frames": 2, "min_score": 0.5})

    assert tracker.try_calibrate(upright_frame) is None
    baseline = tracker.try_calibrate(slouched_frame)

    assert baseline is not None
    assert baseline.neck_angle == pytest.approx(45.0 / 2)
    assert baseline.torso_angle == pytest.approx(18.4349 / 2, abs=1e-3)


def test_reset_allows_recalibration(upright_frame, slouched_frame):
    tracker = CalibrationTracker()
    tracker.try_calibrate(upright_frame)

    tracker.reset()

    assert tracker.baseline is None
    baseline = tracker.try_calibrate(slouched_frame)
    assert baseline.neck_angle == pytest.approx(45.0)


def test_trackers_do_not_share_state(upright_frame):
    calibrated = CalibrationTracker()
    fresh = CalibrationTracker()

    calibrated.try_calibrate(upright_frame)

    assert fresh.baseline is None
