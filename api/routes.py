"""
API路由定义
"""
import json
import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect

from analysis.metrics_exporter import summarize_session
from api.schemas import HealthResponse, ServerEvent, SessionsResponse, SessionSummary
from core.input_handler import InputHandler
from core.pipeline import PosturePipeline
from utils.exceptions import InputError

logger = logging.getLogger(__name__)

router = APIRouter()

# 全局处理管道实例
pipeline = PosturePipeline()
input_handler = InputHandler()


def get_pipeline() -> PosturePipeline:
    return pipeline


@router.get("/api/health", response_model=HealthResponse)
async def health_check(pipeline: PosturePipeline = Depends(get_pipeline)):
    """
    健康检查
    """
    return HealthResponse(
        status="healthy",
        activeConnections=len(pipeline.store),
    )


@router.get("/api/sessions", response_model=SessionsResponse)
async def list_sessions(pipeline: PosturePipeline = Depends(get_pipeline)):
    """
    列出所有会话
    """
    return pipeline.status_snapshot()


@router.get("/api/sessions/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str, pipeline: PosturePipeline = Depends(get_pipeline)):
    """
    查询单个会话
    """
    session = pipeline.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="会话不存在")
    return summarize_session(session)


async def send_event(websocket: WebSocket, event: str, data: Dict[str, Any]):
    await websocket.send_json(ServerEvent(event=event, data=data).model_dump())


@router.websocket("/ws/posture")
async def posture_socket(websocket: WebSocket, pipeline: PosturePipeline = Depends(get_pipeline)):
    """
    姿态数据 WebSocket

    入站事件: posture-data, reset
    出站事件: session, posture-analysis, calibration-complete, posture-alert, reset-complete, error
    """
    await websocket.accept()

    session_id = str(uuid.uuid4())
    pipeline.on_connect(session_id)
    logger.info(f"客户端已连接: {session_id}")

    try:
        await send_event(websocket, "session", {"id": session_id})

        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                await send_event(websocket, "error", {"message": "Invalid JSON message"})
                continue

            await _handle_message(websocket, pipeline, session_id, message)

    except WebSocketDisconnect:
        logger.info(f"客户端已断开: {session_id}")
    finally:
        pipeline.on_disconnect(session_id)


async def _handle_message(
    websocket: WebSocket,
    pipeline: PosturePipeline,
    session_id: str,
    message: Any
):
    """
    处理单条入站消息
    """
    if not isinstance(message, dict):
        await send_event(websocket, "error", {"message": "Message must be an object"})
        return

    event = message.get("event")

    if event == "posture-data":
        try:
            frame = input_handler.parse_frame(message.get("data"))
        except InputError as e:
            logger.debug(f"会话 {session_id} 消息格式错误: {str(e)}")
            await send_event(websocket, "error", {"message": "Error analyzing posture"})
            return

        result = pipeline.process_frame(session_id, frame)
        if result.dropped:
            return

        if result.calibrated:
            session = pipeline.store.get(session_id)
            if session is not None and session.calibration is not None:
                await send_event(websocket, "calibration-complete", session.calibration.to_dict())

        await send_event(websocket, "posture-analysis", result.assessment.to_dict())

        if result.alert is not None:
            await send_event(websocket, "posture-alert", result.alert.to_dict())

    elif event == "reset":
        pipeline.reset_session(session_id)
        await send_event(websocket, "reset-complete", {"id": session_id})

    else:
        await send_event(websocket, "error", {"message": f"Unknown event: {event}"})
