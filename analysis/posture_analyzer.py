"""
姿态评估主逻辑
将单帧关键点转换为一个姿态评估结果
"""
import logging
import math
from typing import Any, Dict, List, Optional

import numpy as np

from analysis.geometry import horizontal_slope, midpoint, vertical_deviation
from config.analysis_configs import KEYPOINT_CONFIG, POSTURE_CONFIG
from utils.data_structures import (
    Assessment, CalibrationBaseline, Frame, Keypoint, Landmark, PostureMetrics
)

logger = logging.getLogger(__name__)


def clamp_score(score: float) -> float:
    """将分数限制在 [0, 100]，非有限值按 0 处理"""
    if not math.isfinite(score):
        return 0.0
    return float(min(100.0, max(0.0, score)))


class PostureAnalyzer:
    """
    姿态分析器

    三个特征各自独立降级：缺少髋部时只评估头部前倾，
    圆肩和躯干倾斜保持 False。
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        keypoint_config: Optional[Dict[str, Any]] = None
    ):
        """
        初始化姿态分析器

        Args:
            config: 姿态评估配置，默认使用 POSTURE_CONFIG
            keypoint_config: 关键点置信度配置，默认使用 KEYPOINT_CONFIG
        """
        self.config = config or POSTURE_CONFIG
        self.keypoint_config = keypoint_config or KEYPOINT_CONFIG
        self.required_min_score = self.keypoint_config["required_min_score"]
        self.optional_min_score = self.keypoint_config["optional_min_score"]
        self.min_segment = self.config["min_segment_length"]
        self.penalties = self.config["penalties"]

        logger.info("姿态分析器初始化完成")

    def analyze(
        self,
        frame: Frame,
        baseline: Optional[CalibrationBaseline] = None,
        previous_smoothed: Optional[Assessment] = None
    ) -> Assessment:
        """
        评估单帧姿态

        Args:
            frame: 关键点帧
            baseline: 个人校准基准，未校准时为 None
            previous_smoothed: 上一帧平滑后的评估，仅在开启内部混合时使用

        Returns:
            姿态评估结果；缺少鼻子或双肩时返回无效评估
        """
        nose = frame.get(Landmark.NOSE, self.required_min_score)
        left_shoulder = frame.get(Landmark.LEFT_SHOULDER, self.required_min_score)
        right_shoulder = frame.get(Landmark.RIGHT_SHOULDER, self.required_min_score)

        if nose is None or left_shoulder is None or right_shoulder is None:
            logger.debug("缺少必需关键点，返回无效评估")
            return Assessment.invalid()

        left_hip = frame.get(Landmark.LEFT_HIP, self.optional_min_score)
        right_hip = frame.get(Landmark.RIGHT_HIP, self.optional_min_score)
        hips_available = left_hip is not None and right_hip is not None

        used = [nose, left_shoulder, right_shoulder]
        if hips_available:
            used.extend([left_hip, right_hip])
        confidence = self._calculate_confidence(used)

        shoulder_center = midpoint(left_shoulder.point, right_shoulder.point)
        neck_angle = vertical_deviation(nose.point, shoulder_center)
        shoulder_slope = horizontal_slope(left_shoulder.point, right_shoulder.point)

        forward_head = self._detect_forward_head(
            frame, nose, left_shoulder, right_shoulder, neck_angle, confidence, baseline
        )

        rounded_shoulders = False
        torso_lean = False
        torso_angle = None
        if hips_available:
            rounded_shoulders = self._detect_rounded_shoulders(
                left_shoulder, right_shoulder, left_hip, right_hip, shoulder_slope, baseline
            )
            hip_center = midpoint(left_hip.point, right_hip.point)
            torso_angle = vertical_deviation(shoulder_center, hip_center)
            torso_lean = self._detect_torso_lean(torso_angle, baseline)

        metrics = PostureMetrics(
            forward_head=forward_head,
            rounded_shoulders=rounded_shoulders,
            torso_lean=torso_lean,
            neck_angle=neck_angle,
            shoulder_slope=shoulder_slope,
            torso_angle=torso_angle,
        )

        score = self._calculate_score(metrics, confidence)
        score = self._blend_with_previous(score, confidence, previous_smoothed)

        return Assessment(
            overall_score=score,
            confidence=confidence,
            valid=True,
            metrics=metrics,
        )

    def _calculate_confidence(self, keypoints: List[Keypoint]) -> float:
        """参与评估的关键点置信度均值"""
        return float(np.clip(np.mean([kp.score for kp in keypoints]), 0.0, 1.0))

    def _detect_forward_head(
        self,
        frame: Frame,
        nose: Keypoint,
        left_shoulder: Keypoint,
        right_shoulder: Keypoint,
        neck_angle: float,
        confidence: float,
        baseline: Optional[CalibrationBaseline]
    ) -> bool:
        """
        检测头部前倾

        已校准：颈部角度超过基准加余量
        未校准：头部（双耳中点，缺耳时用鼻子）相对肩部中点的水平偏移 / 肩宽，
        与随置信度降低的自适应阈值比较
        """
        cfg = self.config["forward_head"]

        if baseline is not None:
            return neck_angle > baseline.neck_angle + cfg["calibrated_margin"]

        left_ear = frame.get(Landmark.LEFT_EAR, self.optional_min_score)
        right_ear = frame.get(Landmark.RIGHT_EAR, self.optional_min_score)
        if left_ear is not None and right_ear is not None:
            head_x = (left_ear.x + right_ear.x) / 2
        else:
            head_x = nose.x

        shoulder_width = abs(left_shoulder.x - right_shoulder.x)
        if shoulder_width < self.min_segment:
            return False

        shoulder_center_x = (left_shoulder.x + right_shoulder.x) / 2
        offset = abs(head_x - shoulder_center_x) / shoulder_width
        threshold = cfg["base_threshold"] - cfg["confidence_bonus"] * confidence

        return offset > threshold

    def _detect_rounded_shoulders(
        self,
        left_shoulder: Keypoint,
        right_shoulder: Keypoint,
        left_hip: Keypoint,
        right_hip: Keypoint,
        shoulder_slope: float,
        baseline: Optional[CalibrationBaseline]
    ) -> bool:
        """
        检测圆肩：肩宽相对髋宽过窄，已校准时肩线倾斜超出基准也判定为圆肩
        """
        cfg = self.config["rounded_shoulders"]

        rounded = False
        hip_width = abs(left_hip.x - right_hip.x)
        if hip_width >= self.min_segment:
            shoulder_width = abs(left_shoulder.x - right_shoulder.x)
            rounded = shoulder_width / hip_width < cfg["width_ratio_cutoff"]

        if baseline is not None:
            rounded = rounded or shoulder_slope > baseline.shoulder_slope + cfg["calibrated_margin"]

        return rounded

    def _detect_torso_lean(
        self,
        torso_angle: float,
        baseline: Optional[CalibrationBaseline]
    ) -> bool:
        cfg = self.config["torso_lean"]
        if baseline is not None:
            return torso_angle > baseline.torso_angle + cfg["calibrated_margin"]
        return torso_angle > cfg["max_angle"]

    def _calculate_score(self, metrics: PostureMetrics, confidence: float) -> float:
        """
        计算综合分数

        Args:
            metrics: 姿态指标
            confidence: 评估置信度

        Returns:
            [0, 100] 之间的分数
        """
        score = 100.0
        for issue in metrics.issues():
            score -= self.penalties[issue]

        # 低置信度时拉低分数
        score -= self.penalties["confidence"] * (1.0 - confidence)

        return clamp_score(score)

    def _blend_with_previous(
        self,
        score: float,
        confidence: float,
        previous_smoothed: Optional[Assessment]
    ) -> float:
        cfg = self.config["inline_blend"]
        if not cfg["enabled"]:
            return score
        if previous_smoothed is None or not previous_smoothed.valid:
            return score
        if confidence <= cfg["min_confidence"]:
            return score

        blended = cfg["weight"] * score + (1.0 - cfg["weight"]) * previous_smoothed.overall_score
        return clamp_score(blended)
