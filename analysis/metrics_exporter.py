"""
会话指标导出
"""
from datetime import datetime
from typing import Any, Dict

from utils.data_structures import Session


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).isoformat()


def summarize_session(session: Session) -> Dict[str, Any]:
    """
    生成会话摘要，用于状态查询接口

    Args:
        session: 会话状态

    Returns:
        可直接序列化为JSON的字典
    """
    average = session.average_score
    latest = session.last_smoothed

    return {
        "id": session.id,
        "connectedAt": _isoformat(session.connected_at),
        "lastActivityAt": _isoformat(session.last_activity_at),
        "frameCount": session.frame_count,
        "postureHistoryCount": len(session.history),
        "droppedFrames": session.dropped_frames,
        "alertCount": session.alert_count,
        "averageScore": None if average is None else round(average, 1),
        "calibrated": session.calibration is not None,
        "calibration": session.calibration.to_dict() if session.calibration else None,
        "latest": latest.to_dict() if latest is not None else None,
    }
