"""
帧率限制
"""
import logging
from typing import Optional

from config.analysis_configs import SESSION_CONFIG
from utils.data_structures import Session

logger = logging.getLogger(__name__)


class FrameRateLimiter:
    """
    按会话限制处理帧率

    距上一个被接受的帧不足 min_interval 秒的帧直接丢弃，不排队。
    """

    def __init__(self, min_interval: Optional[float] = None):
        self.min_interval = (
            SESSION_CONFIG["min_frame_interval"] if min_interval is None else min_interval
        )

    def allow(self, session: Session, now: float) -> bool:
        """
        判断当前帧是否处理

        Args:
            session: 会话状态
            now: 帧到达时间（秒）

        Returns:
            True 表示处理该帧
        """
        last = session.last_accepted_at
        if last is not None and now < last:
            # 时钟回拨：以当前时间重新计时
            logger.warning(f"会话 {session.id} 时钟回拨 {last - now:.3f}s")
        elif last is not None and now - last < self.min_interval:
            session.dropped_frames += 1
            return False

        session.last_accepted_at = now
        return True
