"""
datasets - 测试数据集

包含:
- pockets: 矩形、圆形、窄槽、带岛屿的参考型腔
"""

from .pockets import (
    PocketConstraints,
    circular_pocket,
    island_pocket,
    narrow_slot,
    rectangle_pocket,
)

__all__ = [
    "PocketConstraints",
    "rectangle_pocket",
    "circular_pocket",
    "narrow_slot",
    "island_pocket",
]
