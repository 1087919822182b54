import pytest

from utils.data_structures import Assessment, Frame, PostureMetrics


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


def keypoint(name, x, y, score=0.9):
    return {"name": name, "x": x, "y": y, "score": score}


def upright_keypoints(score=0.9):
    """正面坐直：头在肩部正上方，躯干竖直，肩宽大于髋宽"""
    return [
        keypoint("nose", 0.5, 0.30, score),
        keypoint("left_ear", 0.45, 0.30, score),
        keypoint("right_ear", 0.55, 0.30, score),
        keypoint("left_shoulder", 0.4, 0.45, score),
        keypoint("right_shoulder", 0.6, 0.45, score),
        keypoint("left_hip", 0.42, 0.75, score),
        keypoint("right_hip", 0.58, 0.75, score),
    ]


def slouched_keypoints(score=0.9):
    """头部前伸、肩窄于髋、躯干倾斜约18度"""
    return [
        keypoint("nose", 0.72, 0.33, score),
        keypoint("left_ear", 0.70, 0.33, score),
        keypoint("right_ear", 0.76, 0.33, score),
        keypoint("left_shoulder", 0.5, 0.45, score),
        keypoint("right_shoulder", 0.7, 0.45, score),
        keypoint("left_hip", 0.3, 0.75, score),
        keypoint("right_hip", 0.7, 0.75, score),
    ]


def without(keypoints, *names):
    return [kp for kp in keypoints if kp["name"] not in names]


def make_assessment(score, confidence=0.9, valid=True, **flags):
    return Assessment(
        overall_score=score,
        confidence=confidence,
        valid=valid,
        metrics=PostureMetrics(**flags) if valid else None,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upright_frame():
    return Frame.from_keypoints(upright_keypoints())


@pytest.fixture
def slouched_frame():
    return Frame.from_keypoints(slouched_keypoints())
