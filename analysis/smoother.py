"""
评估分数时间平滑
"""
import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

import numpy as np

from analysis.posture_analyzer import clamp_score
from config.analysis_configs import SMOOTHING_CONFIG
from utils.data_structures import Assessment

logger = logging.getLogger(__name__)


class TemporalSmoother:
    """
    时间平滑器

    smoothed = alpha * current + (1 - alpha) * 窗口均值
    只平滑分数，valid / confidence / metrics 原样保留。
    恒定分数的输入序列收敛到该分数本身。
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        初始化平滑器

        Args:
            config: 平滑配置，默认使用 SMOOTHING_CONFIG
        """
        self.config = config or SMOOTHING_CONFIG
        self.alpha = self.config["alpha"]
        self.window = self.config["window"]
        self.min_history = self.config["min_history"]

        logger.info("时间平滑器初始化完成")

    def smooth(self, history: Sequence[Assessment], current: Assessment) -> Assessment:
        """
        平滑当前评估

        Args:
            history: 按时间顺序排列的历史评估（旧 -> 新）
            current: 当前原始评估

        Returns:
            平滑后的评估；历史不足或当前评估无效时原样返回
        """
        if not current.valid:
            return current

        window = [a.overall_score for a in list(history)[-self.window:] if a.valid]
        if len(window) < self.min_history:
            return current

        window_mean = float(np.mean(window))
        smoothed_score = self.alpha * current.overall_score + (1.0 - self.alpha) * window_mean

        return replace(current, overall_score=clamp_score(smoothed_score))
