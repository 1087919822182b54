"""
全局配置管理
"""
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings

# 项目根目录
BASE_DIR = Path(__file__).parent.parent

class Settings(BaseSettings):
    # 服务器配置
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["*"]

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = str(BASE_DIR / "posture_monitor.log")

    # 会话配置
    HISTORY_SIZE: int = 100  # 每个会话保留的评估条数
    MIN_FRAME_INTERVAL: float = 0.1  # 秒，约10Hz
    IDLE_SWEEP_INTERVAL: float = 300.0  # 秒，空闲清理周期
    SESSION_MAX_AGE: float = 1800.0  # 秒，超过即视为空闲会话

    # 报警配置
    ALERT_COOLDOWN: float = 120.0  # 秒
    ALERT_WINDOW: int = 10
    ALERT_THRESHOLD: int = 8
    POOR_SCORE_THRESHOLD: float = 60.0
    ALERT_MIN_CONFIDENCE: float = 0.5

    class Config:
        env_file = ".env"

settings = Settings()
