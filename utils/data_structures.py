"""
数据结构定义
"""
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Deque, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from analysis.calibration import CalibrationTracker


class Landmark(str, Enum):
    """COCO 17个关键点名称"""
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


@dataclass(frozen=True)
class Keypoint:
    """关键点数据结构（归一化坐标）"""
    name: Landmark
    x: float
    y: float
    score: float

    @property
    def point(self) -> tuple:
        return (self.x, self.y)


@dataclass
class Frame:
    """
    单帧关键点集合

    只保留格式正确的关键点：名称属于 Landmark、坐标有限、score 在 [0, 1]。
    同一名称出现多次时两者都丢弃，后续按"关键点缺失"处理。
    """
    keypoints: Dict[Landmark, Keypoint] = field(default_factory=dict)

    @classmethod
    def from_keypoints(cls, raw_keypoints: Iterable[Dict[str, Any]]) -> "Frame":
        """
        从原始关键点字典列表构建帧

        Args:
            raw_keypoints: [{"name": str, "x": float, "y": float, "score": float}, ...]

        Returns:
            Frame 实例
        """
        keypoints: Dict[Landmark, Keypoint] = {}
        duplicated = set()

        for raw in raw_keypoints:
            keypoint = _parse_keypoint(raw)
            if keypoint is None:
                continue
            if keypoint.name in keypoints or keypoint.name in duplicated:
                duplicated.add(keypoint.name)
                keypoints.pop(keypoint.name, None)
                continue
            keypoints[keypoint.name] = keypoint

        return cls(keypoints=keypoints)

    def get(self, landmark: Landmark, min_score: float = 0.0) -> Optional[Keypoint]:
        """返回置信度严格大于 min_score 的关键点，否则返回 None"""
        keypoint = self.keypoints.get(landmark)
        if keypoint is None or keypoint.score <= min_score:
            return None
        return keypoint

    def __len__(self) -> int:
        return len(self.keypoints)


def _parse_keypoint(raw: Any) -> Optional[Keypoint]:
    if not isinstance(raw, dict):
        return None
    try:
        name = Landmark(raw.get("name"))
        x = float(raw["x"])
        y = float(raw["y"])
        score = float(raw.get("score", raw.get("confidence")))
    except (KeyError, TypeError, ValueError):
        return None

    if not all(math.isfinite(v) for v in (x, y, score)):
        return None
    if not 0.0 <= score <= 1.0:
        return None
    return Keypoint(name=name, x=x, y=y, score=score)


@dataclass(frozen=True)
class CalibrationBaseline:
    """个人基准姿态（单位：度）"""
    neck_angle: float
    shoulder_slope: float
    torso_angle: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "neckAngle": round(self.neck_angle, 1),
            "shoulderSlope": round(self.shoulder_slope, 1),
            "torsoAngle": round(self.torso_angle, 1),
        }


@dataclass(frozen=True)
class PostureMetrics:
    """姿态指标"""
    forward_head: bool = False
    rounded_shoulders: bool = False
    torso_lean: bool = False
    neck_angle: float = 0.0
    shoulder_slope: float = 0.0
    torso_angle: Optional[float] = None

    def issues(self) -> List[str]:
        """返回当前为真的问题标记"""
        flags = {
            "forward_head": self.forward_head,
            "rounded_shoulders": self.rounded_shoulders,
            "torso_lean": self.torso_lean,
        }
        return [name for name, flagged in flags.items() if flagged]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forwardHead": self.forward_head,
            "roundedShoulders": self.rounded_shoulders,
            "torsoLean": self.torso_lean,
            "neckAngle": round(self.neck_angle, 1),
            "shoulderSlope": round(self.shoulder_slope, 1),
            "torsoAngle": None if self.torso_angle is None else round(self.torso_angle, 1),
        }


@dataclass(frozen=True)
class Assessment:
    """
    单帧姿态评估结果

    valid 为 False 时 overall_score 固定为 0，只是占位值，调用方必须先判断 valid。
    """
    overall_score: float
    confidence: float
    valid: bool
    metrics: Optional[PostureMetrics] = None

    @classmethod
    def invalid(cls) -> "Assessment":
        return cls(overall_score=0.0, confidence=0.0, valid=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "overallScore": round(self.overall_score, 1),
            "confidence": round(self.confidence, 3),
            "valid": self.valid,
        }
        if self.metrics is not None:
            data["metrics"] = self.metrics.to_dict()
        return data


@dataclass(frozen=True)
class Alert:
    """姿态报警事件"""
    message: str
    severity: str
    timestamp: float
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity,
            "timestamp": self.timestamp,
            "issues": list(self.issues),
        }


@dataclass
class Session:
    """单个观察者的会话状态"""
    id: str
    connected_at: float
    last_activity_at: float
    history: Deque[Assessment]
    frame_count: int = 0
    last_smoothed: Optional[Assessment] = None
    calibration: Optional[CalibrationBaseline] = None
    calibrator: Optional["CalibrationTracker"] = None  # 每个会话独立
    last_alert_at: Optional[float] = None
    last_accepted_at: Optional[float] = None

    # 统计信息
    alert_count: int = 0
    dropped_frames: int = 0
    valid_frames: int = 0
    score_sum: float = 0.0

    @classmethod
    def new(cls, session_id: str, now: float, capacity: int) -> "Session":
        return cls(
            id=session_id,
            connected_at=now,
            last_activity_at=now,
            history=deque(maxlen=capacity),
        )

    @property
    def average_score(self) -> Optional[float]:
        if self.valid_frames == 0:
            return None
        return self.score_sum / self.valid_frames
