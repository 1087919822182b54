"""
会话存储
负责会话的创建、记录、查询和空闲清理
"""
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from config.analysis_configs import SESSION_CONFIG
from utils.data_structures import Assessment, Session
from utils.exceptions import ConfigurationError, DuplicateSessionError

logger = logging.getLogger(__name__)


class SessionStore:
    """
    会话表

    会话表的增删和遍历由同一把锁互斥；单个会话的数据只由该会话自己的帧处理
    和空闲清理访问。
    """

    def __init__(
        self,
        capacity: Optional[int] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        初始化会话存储

        Args:
            capacity: 每个会话保留的历史评估条数
            clock: 时间来源，返回秒
        """
        self.capacity = capacity if capacity is not None else SESSION_CONFIG["history_size"]
        if self.capacity < 1:
            raise ConfigurationError(f"历史容量必须为正数: {self.capacity}")

        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.RLock()

        logger.info(f"会话存储初始化完成 (历史容量 {self.capacity})")

    def create(self, session_id: str) -> Session:
        """
        创建会话

        Args:
            session_id: 会话ID

        Returns:
            新会话

        Raises:
            DuplicateSessionError: 会话ID已存在
        """
        with self._lock:
            if session_id in self._sessions:
                raise DuplicateSessionError(f"会话已存在: {session_id}")
            session = Session.new(session_id, self.clock(), self.capacity)
            self._sessions[session_id] = session

        logger.info(f"🔗 会话已创建: {session_id}")
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def record(self, session_id: str, assessment: Assessment) -> bool:
        """
        记录一条评估

        会话不存在时（例如刚被清理）不做任何修改，返回 False。

        Args:
            session_id: 会话ID
            assessment: 平滑后的评估

        Returns:
            是否记录成功
        """
        session = self.get(session_id)
        if session is None:
            logger.warning(f"记录评估时会话不存在: {session_id}")
            return False

        session.history.append(assessment)
        session.last_activity_at = self.clock()
        session.frame_count += 1
        session.last_smoothed = assessment
        if assessment.valid:
            session.valid_frames += 1
            session.score_sum += assessment.overall_score
        return True

    def touch(self, session_id: str) -> bool:
        """只更新活跃时间"""
        session = self.get(session_id)
        if session is None:
            return False
        session.last_activity_at = self.clock()
        return True

    def remove(self, session_id: str) -> bool:
        """
        删除会话

        Returns:
            会话是否存在
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            logger.warning(f"删除时会话不存在: {session_id}")
            return False

        logger.info(f"🔌 会话已删除: {session_id} (共处理 {session.frame_count} 帧)")
        return True

    def sweep_idle(self, now: Optional[float] = None, max_age: Optional[float] = None) -> List[str]:
        """
        清理空闲会话

        Args:
            now: 当前时间，默认取 clock()
            max_age: 最大空闲秒数，默认取配置

        Returns:
            被清理的会话ID列表
        """
        now = self.clock() if now is None else now
        max_age = SESSION_CONFIG["max_age"] if max_age is None else max_age

        with self._lock:
            expired = [
                session_id for session_id, session in self._sessions.items()
                if now - session.last_activity_at > max_age
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info(f"🗑️ 清理空闲会话 {len(expired)} 个: {expired}")
        return expired

    def sessions(self) -> List[Session]:
        """当前会话列表的副本"""
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
