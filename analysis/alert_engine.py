"""
姿态报警判定
"""
import logging
from typing import Any, Dict, List, Optional

from config.analysis_configs import ALERT_CONFIG
from utils.data_structures import Alert, Session
from utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class AlertEngine:
    """
    报警引擎

    最近 window 条评估中，分数低于 poor_score 且置信度高于 min_confidence 的
    条数达到 threshold，并且距上次报警超过 cooldown 秒时触发报警。
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        初始化报警引擎

        Args:
            config: 报警配置，默认使用 ALERT_CONFIG
        """
        self.config = config or ALERT_CONFIG
        self.window = self.config["window"]
        self.threshold = self.config["threshold"]
        self.poor_score = self.config["poor_score"]
        self.min_confidence = self.config["min_confidence"]
        self.cooldown = self.config["cooldown"]

        if self.window < 1 or not 1 <= self.threshold <= self.window:
            raise ConfigurationError(
                f"报警阈值配置无效: threshold={self.threshold}, window={self.window}"
            )

        logger.info(
            f"报警引擎初始化完成 (阈值 {self.threshold}/{self.window}, 冷却 {self.cooldown}s)"
        )

    def check(self, session: Session, now: float) -> Optional[Alert]:
        """
        检查会话是否需要报警

        Args:
            session: 会话状态
            now: 当前时间（秒）

        Returns:
            报警事件，无需报警时返回 None
        """
        recent = list(session.history)[-self.window:]
        poor_count = sum(
            1 for a in recent
            if a.valid and a.overall_score < self.poor_score and a.confidence > self.min_confidence
        )

        if poor_count < self.threshold:
            return None

        if session.last_alert_at is not None and now - session.last_alert_at <= self.cooldown:
            logger.debug(f"会话 {session.id} 处于报警冷却期")
            return None

        alert = Alert(
            message=self.config["message"],
            severity=self.config["severity"],
            timestamp=now,
            issues=self._latest_issues(session),
        )
        session.last_alert_at = now
        session.alert_count += 1

        logger.info(f"⚠️ 会话 {session.id} 触发姿态报警 ({poor_count}/{len(recent)} 条不良)")
        return alert

    def _latest_issues(self, session: Session) -> List[str]:
        """最近一条有效评估中的问题标记"""
        for assessment in reversed(session.history):
            if assessment.valid and assessment.metrics is not None:
                return assessment.metrics.issues()
        return []
