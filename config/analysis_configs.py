"""
姿态分析相关配置
"""
from config.settings import settings

# 关键点置信度阈值
KEYPOINT_CONFIG = {
    "required_min_score": 0.5,  # 鼻子和双肩
    "optional_min_score": 0.3,  # 耳朵和髋部
}

# 姿态评估配置
POSTURE_CONFIG = {
    "forward_head": {
        "base_threshold": 0.5,  # 头部水平偏移 / 肩宽
        "confidence_bonus": 0.2,  # 置信度越高阈值越严格
        "calibrated_margin": 5.0,  # 度
    },
    "rounded_shoulders": {
        "width_ratio_cutoff": 0.8,  # 肩宽 / 髋宽
        "calibrated_margin": 3.0,  # 度
    },
    "torso_lean": {
        "max_angle": 15.0,  # 度
        "calibrated_margin": 8.0,  # 度
    },
    "penalties": {
        "forward_head": 30.0,
        "rounded_shoulders": 25.0,
        "torso_lean": 25.0,
        "confidence": 20.0,  # 乘以 (1 - confidence)
    },
    "min_segment_length": 1e-3,  # 肩宽、髋宽退化判定
    # 分析器内部的时间混合，仅在不使用独立平滑器时开启
    "inline_blend": {
        "enabled": False,
        "weight": 0.7,  # 新分数所占比例
        "min_confidence": 0.6,
    },
}

# 校准配置
CALIBRATION_CONFIG = {
    "required_frames": 1,
    "min_score": 0.5,
}

# 平滑配置
SMOOTHING_CONFIG = {
    "alpha": 0.7,
    "window": 10,
    "min_history": 3,
}

# 报警配置
ALERT_CONFIG = {
    "window": settings.ALERT_WINDOW,
    "threshold": settings.ALERT_THRESHOLD,
    "poor_score": settings.POOR_SCORE_THRESHOLD,
    "min_confidence": settings.ALERT_MIN_CONFIDENCE,
    "cooldown": settings.ALERT_COOLDOWN,
    "check_every": 1,
    "message": "Poor posture detected! Please adjust your sitting position.",
    "severity": "high",
}

# 会话配置
SESSION_CONFIG = {
    "history_size": settings.HISTORY_SIZE,
    "min_frame_interval": settings.MIN_FRAME_INTERVAL,
    "sweep_interval": settings.IDLE_SWEEP_INTERVAL,
    "max_age": settings.SESSION_MAX_AGE,
}
