"""
utils - 工具函数模块

包含:
- geometry: 二维几何计算工具
"""

from .geometry import Arc, Circle, Line, RotationDirection, circle_intersect, normalize

__all__ = [
    "Arc",
    "Circle",
    "Line",
    "RotationDirection",
    "circle_intersect",
    "normalize",
]
