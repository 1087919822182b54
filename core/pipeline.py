"""
主处理管道协调器
负责协调每帧的处理流程：限流 -> 校准 -> 姿态评估 -> 平滑 -> 记录 -> 报警
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from analysis.alert_engine import AlertEngine
from analysis.calibration import CalibrationTracker
from analysis.metrics_exporter import summarize_session
from analysis.posture_analyzer import PostureAnalyzer
from analysis.smoother import TemporalSmoother
from config.analysis_configs import ALERT_CONFIG, CALIBRATION_CONFIG, SESSION_CONFIG
from core.rate_limiter import FrameRateLimiter
from core.session_store import SessionStore
from utils.data_structures import Alert, Assessment, Frame, Session
from utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """单帧处理结果"""
    assessment: Optional[Assessment] = None
    alert: Optional[Alert] = None
    dropped: bool = False
    calibrated: bool = False  # 本帧刚完成校准


class PosturePipeline:
    """
    姿态监测管道

    每个会话的状态彼此独立；处理过程是纯计算，不做任何I/O。
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        analyzer: Optional[PostureAnalyzer] = None,
        smoother: Optional[TemporalSmoother] = None,
        alert_engine: Optional[AlertEngine] = None,
        rate_limiter: Optional[FrameRateLimiter] = None,
        calibration_config: Optional[Dict[str, Any]] = None,
        alert_check_every: Optional[int] = None
    ):
        """
        初始化处理管道

        Raises:
            ConfigurationError: 报警窗口大于会话历史容量
        """
        self.store = store if store is not None else SessionStore()
        self.analyzer = analyzer if analyzer is not None else PostureAnalyzer()
        self.smoother = smoother if smoother is not None else TemporalSmoother()
        self.alert_engine = alert_engine if alert_engine is not None else AlertEngine()
        self.rate_limiter = rate_limiter if rate_limiter is not None else FrameRateLimiter()
        self.calibration_config = (
            calibration_config if calibration_config is not None else CALIBRATION_CONFIG
        )
        if alert_check_every is None:
            alert_check_every = ALERT_CONFIG["check_every"]
        self.alert_check_every = max(1, alert_check_every)

        # 报警窗口只能取已保留的历史
        if self.alert_engine.window > self.store.capacity:
            raise ConfigurationError(
                f"报警窗口 {self.alert_engine.window} 大于历史容量 {self.store.capacity}"
            )

        logger.info("处理管道初始化完成")

    def on_connect(self, session_id: str) -> Session:
        """
        连接建立时创建会话

        Raises:
            DuplicateSessionError: 会话ID已存在
        """
        session = self.store.create(session_id)
        session.calibrator = CalibrationTracker(self.calibration_config)
        return session

    def on_disconnect(self, session_id: str) -> bool:
        """连接断开时立即删除会话"""
        return self.store.remove(session_id)

    def process_frame(self, session_id: str, frame: Frame) -> FrameResult:
        """
        处理单帧

        Args:
            session_id: 会话ID
            frame: 关键点帧

        Returns:
            处理结果；会话不存在或被限流时 assessment 为 None
        """
        session = self.store.get(session_id)
        if session is None:
            logger.warning(f"处理帧时会话不存在: {session_id}")
            return FrameResult(dropped=True)

        now = self.store.clock()
        if not self.rate_limiter.allow(session, now):
            self.store.touch(session_id)
            return FrameResult(dropped=True)

        calibrated = False
        if session.calibration is None and session.calibrator is not None:
            session.calibration = session.calibrator.try_calibrate(frame)
            calibrated = session.calibration is not None

        raw = self.analyzer.analyze(frame, session.calibration, session.last_smoothed)
        assessment = self.smoother.smooth(session.history, raw)

        if not self.store.record(session_id, assessment):
            return FrameResult(dropped=True)

        alert = None
        if session.frame_count % self.alert_check_every == 0:
            alert = self.alert_engine.check(session, now)

        logger.debug(
            f"会话 {session_id} 第 {session.frame_count} 帧: "
            f"valid={assessment.valid}, score={assessment.overall_score:.1f}"
        )
        return FrameResult(assessment=assessment, alert=alert, calibrated=calibrated)

    def reset_session(self, session_id: str) -> bool:
        """
        清空会话的历史、校准和统计，连接保持不变

        Returns:
            会话是否存在
        """
        session = self.store.get(session_id)
        if session is None:
            logger.warning(f"重置时会话不存在: {session_id}")
            return False

        session.history.clear()
        session.last_smoothed = None
        session.calibration = None
        if session.calibrator is not None:
            session.calibrator.reset()
        session.last_alert_at = None
        session.alert_count = 0
        session.dropped_frames = 0
        session.valid_frames = 0
        session.score_sum = 0.0
        session.frame_count = 0

        logger.info(f"🔄 会话已重置: {session_id}")
        return True

    def sweep_idle(self, max_age: Optional[float] = None) -> List[str]:
        """清理空闲会话"""
        if max_age is None:
            max_age = SESSION_CONFIG["max_age"]
        return self.store.sweep_idle(self.store.clock(), max_age)

    def status_snapshot(self) -> Dict[str, Any]:
        """会话表的只读快照"""
        sessions = [summarize_session(s) for s in self.store.sessions()]
        return {
            "activeConnections": len(sessions),
            "sessions": sessions,
        }
