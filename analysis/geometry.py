"""
几何计算工具
无状态函数，输入均为归一化坐标 (x, y)
"""
from typing import Sequence, Tuple

import numpy as np

# 向量长度低于该值视为退化
MIN_VECTOR_LENGTH = 1e-3
# 退化时返回的中性角度（直线）
NEUTRAL_ANGLE = 180.0

Point = Sequence[float]


def distance(point1: Point, point2: Point) -> float:
    """
    计算两点之间的欧氏距离

    Args:
        point1: 第一个点
        point2: 第二个点

    Returns:
        距离
    """
    return float(np.linalg.norm(np.asarray(point1, dtype=float) - np.asarray(point2, dtype=float)))


def midpoint(point1: Point, point2: Point) -> Tuple[float, float]:
    """两点中点"""
    return ((point1[0] + point2[0]) / 2, (point1[1] + point2[1]) / 2)


def angle_at(point1: Point, vertex: Point, point3: Point) -> float:
    """
    计算三点之间的角度（vertex为顶点）

    任一射线长度小于 MIN_VECTOR_LENGTH 时返回 NEUTRAL_ANGLE

    Args:
        point1: 第一个点
        vertex: 顶点
        point3: 第三个点

    Returns:
        角度（度），范围 [0, 180]
    """
    vertex = np.asarray(vertex, dtype=float)
    vec1 = np.asarray(point1, dtype=float) - vertex
    vec2 = np.asarray(point3, dtype=float) - vertex

    len1 = np.linalg.norm(vec1)
    len2 = np.linalg.norm(vec2)

    # 避免除零
    if len1 < MIN_VECTOR_LENGTH or len2 < MIN_VECTOR_LENGTH:
        return NEUTRAL_ANGLE

    cos_angle = np.dot(vec1, vec2) / (len1 * len2)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)  # 确保在有效范围内

    return float(np.degrees(np.arccos(cos_angle)))


def vertical_deviation(upper: Point, lower: Point) -> float:
    """
    计算 lower -> upper 连线与竖直方向的夹角

    图像坐标 y 轴向下，upper 在 lower 正上方时为 0 度。
    两点重合时 angle_at 返回 180，偏差即为 0。

    Returns:
        偏差角度（度），范围 [0, 180]
    """
    below = (lower[0], lower[1] + 1.0)
    return NEUTRAL_ANGLE - angle_at(upper, lower, below)


def horizontal_slope(point1: Point, point2: Point) -> float:
    """
    两点连线与水平方向的夹角

    Returns:
        角度（度），范围 [0, 90]
    """
    dx = abs(point2[0] - point1[0])
    dy = abs(point2[1] - point1[1])
    if dx < MIN_VECTOR_LENGTH and dy < MIN_VECTOR_LENGTH:
        return 0.0
    return float(np.degrees(np.arctan2(dy, dx)))
