"""
输入处理模块
负责将传输层收到的关键点消息统一转换为帧数据
"""
import logging
from typing import Any

from utils.data_structures import Frame
from utils.exceptions import InputError

logger = logging.getLogger(__name__)

class InputHandler:
    """
    输入处理器类
    """

    def parse_frame(self, payload: Any) -> Frame:
        """
        解析单帧消息

        Args:
            payload: {"keypoints": [...]} 或直接为关键点列表

        Returns:
            Frame；格式错误的单个关键点被丢弃，按缺失处理

        Raises:
            InputError: 消息整体不是关键点列表
        """
        if isinstance(payload, dict):
            keypoints = payload.get("keypoints")
        else:
            keypoints = payload

        if not isinstance(keypoints, list):
            raise InputError(f"关键点数据格式错误: {type(keypoints).__name__}")

        frame = Frame.from_keypoints(keypoints)
        if len(frame) < len(keypoints):
            logger.debug(f"丢弃 {len(keypoints) - len(frame)} 个格式错误或重复的关键点")
        return frame
