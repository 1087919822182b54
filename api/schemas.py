"""
API数据模型定义
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

# 姿态指标
class MetricsOut(BaseModel):
    forwardHead: bool
    roundedShoulders: bool
    torsoLean: bool
    neckAngle: float
    shoulderSlope: float
    torsoAngle: Optional[float] = None

# 姿态评估
class AssessmentOut(BaseModel):
    overallScore: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=1)
    valid: bool
    metrics: Optional[MetricsOut] = None

class CalibrationOut(BaseModel):
    neckAngle: float
    shoulderSlope: float
    torsoAngle: float

# 会话摘要
class SessionSummary(BaseModel):
    id: str
    connectedAt: datetime
    lastActivityAt: datetime
    frameCount: int
    postureHistoryCount: int
    droppedFrames: int
    alertCount: int
    averageScore: Optional[float] = None
    calibrated: bool
    calibration: Optional[CalibrationOut] = None
    latest: Optional[AssessmentOut] = None

# 健康检查响应
class HealthResponse(BaseModel):
    status: str
    activeConnections: int
    timestamp: datetime = Field(default_factory=datetime.now)

# 会话列表响应
class SessionsResponse(BaseModel):
    activeConnections: int
    sessions: List[SessionSummary]

# WebSocket 出站事件
class ServerEvent(BaseModel):
    event: str
    data: Dict[str, Any] = {}
