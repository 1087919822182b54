"""
主应用入口 - 坐姿监测系统
使用FastAPI接收关键点数据流并实时评估坐姿
"""

import sys
import asyncio
import contextlib
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# 添加项目根目录到Python路径
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from api.routes import router, get_pipeline
from config.analysis_configs import SESSION_CONFIG
from config.settings import settings

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(settings.LOG_FILE, encoding='utf-8')
    ]
)
logger = logging.getLogger(__name__)

# 创建FastAPI应用
app = FastAPI(
    title="坐姿监测系统",
    description="基于关键点流的实时坐姿评估与报警API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# 添加CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

# 空闲会话清理任务
sweep_task: Optional[asyncio.Task] = None

async def idle_sweep_loop(interval: float):
    """
    按固定周期清理空闲会话，与各会话的帧节奏无关
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = get_pipeline().sweep_idle()
            if removed:
                logger.info(f"🗑️ 空闲清理完成，移除 {len(removed)} 个会话")
        except Exception as e:
            logger.error(f"空闲会话清理失败: {str(e)}")

@app.on_event("startup")
async def startup_event():
    """应用启动事件"""
    global sweep_task
    logger.info("🚀 启动坐姿监测系统...")
    logger.info(f"📍 API文档: http://localhost:{settings.PORT}/docs")
    sweep_task = asyncio.create_task(idle_sweep_loop(SESSION_CONFIG["sweep_interval"]))
    logger.info("✅ 系统启动完成")

@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭事件"""
    logger.info("🔄 正在关闭系统...")
    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    logger.info("✅ 系统关闭完成")

@app.get("/")
async def root():
    """根路径 - 系统信息"""
    return {
        "system": "坐姿监测系统",
        "version": "1.0.0",
        "status": "运行中",
        "timestamp": datetime.now().isoformat(),
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "sessions": "/api/sessions",
            "session": "/api/sessions/{session_id}",
            "websocket": "/ws/posture"
        }
    }

if __name__ == "__main__":
    print("🚀 启动坐姿监测系统...")
    print(f"📍 API地址: http://localhost:{settings.PORT}")
    print(f"📖 API文档: http://localhost:{settings.PORT}/docs")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
