"""
个人姿态校准
"""
import logging
from typing import Any, Dict, List, Optional

import numpy as np

from analysis.geometry import horizontal_slope, midpoint, vertical_deviation
from config.analysis_configs import CALIBRATION_CONFIG
from utils.data_structures import CalibrationBaseline, Frame, Landmark

logger = logging.getLogger(__name__)

_CALIBRATION_LANDMARKS = (
    Landmark.NOSE,
    Landmark.LEFT_SHOULDER,
    Landmark.RIGHT_SHOULDER,
    Landmark.LEFT_HIP,
    Landmark.RIGHT_HIP,
)


class CalibrationTracker:
    """
    校准跟踪器，每个会话一个实例

    从监测开始后的前 required_frames 个完整帧（鼻子、双肩、双髋均达到置信度）
    取平均得到基准；基准一旦确定即冻结，之后的调用不再改变它。
    用户始终给不出完整帧时 baseline 保持 None，分析器沿用固定阈值。
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or CALIBRATION_CONFIG
        self.required_frames = max(1, int(self.config["required_frames"]))
        self.min_score = self.config["min_score"]
        self._samples: List[tuple] = []
        self._baseline: Optional[CalibrationBaseline] = None

    @property
    def baseline(self) -> Optional[CalibrationBaseline]:
        return self._baseline

    @property
    def is_calibrated(self) -> bool:
        return self._baseline is not None

    def try_calibrate(self, frame: Frame) -> Optional[CalibrationBaseline]:
        """
        尝试用当前帧完成校准

        Args:
            frame: 关键点帧

        Returns:
            已确定的基准；尚未完成校准时返回 None
        """
        if self._baseline is not None:
            return self._baseline

        points = {}
        for landmark in _CALIBRATION_LANDMARKS:
            keypoint = frame.get(landmark, self.min_score)
            if keypoint is None:
                return None
            points[landmark] = keypoint.point

        shoulder_center = midpoint(points[Landmark.LEFT_SHOULDER], points[Landmark.RIGHT_SHOULDER])
        hip_center = midpoint(points[Landmark.LEFT_HIP], points[Landmark.RIGHT_HIP])

        self._samples.append((
            vertical_deviation(points[Landmark.NOSE], shoulder_center),
            horizontal_slope(points[Landmark.LEFT_SHOULDER], points[Landmark.RIGHT_SHOULDER]),
            vertical_deviation(shoulder_center, hip_center),
        ))

        if len(self._samples) < self.required_frames:
            return None

        neck_angle, shoulder_slope, torso_angle = np.mean(np.asarray(self._samples), axis=0)
        self._baseline = CalibrationBaseline(
            neck_angle=float(neck_angle),
            shoulder_slope=float(shoulder_slope),
            torso_angle=float(torso_angle),
        )
        self._samples.clear()

        logger.info(
            f"校准完成: 颈部 {self._baseline.neck_angle:.1f}°, "
            f"肩线 {self._baseline.shoulder_slope:.1f}°, 躯干 {self._baseline.torso_angle:.1f}°"
        )
        return self._baseline

    def reset(self):
        """清除基准，重新开始校准"""
        self._samples.clear()
        self._baseline = None
