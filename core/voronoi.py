"""
voronoi - 点集 Voronoi 图的直线边提取

基于 scipy.spatial.Voronoi (qhull) 生成 Voronoi 图，仅保留有限的边，
并用 shapely 裁剪到给定包围盒内。
"""

import logging

import numpy as np
from scipy.spatial import QhullError, Voronoi
from shapely import clip_by_rect
from shapely.geometry import LineString

from ..utils.geometry import Line

logger = logging.getLogger(__name__)


def clip_segment(
    p1: np.ndarray,
    p2: np.ndarray,
    min_x: float,
    max_x: float,
    min_y: float,
    max_y: float,
) -> tuple[np.ndarray, np.ndarray] | None:
    """
    将线段裁剪到轴对齐包围盒内。

    Returns:
        裁剪后的 (p1, p2)，线段完全在包围盒外时返回 None
    """
    clipped = clip_by_rect(LineString([p1, p2]), min_x, min_y, max_x, max_y)
    # 仅与边界相交于一点或完全在外
    if clipped.is_empty or clipped.geom_type != "LineString":
        return None
    coords = np.asarray(clipped.coords)
    return coords[0], coords[-1]


def generate_voronoi(
    xs: np.ndarray,
    ys: np.ndarray,
    min_x: float,
    max_x: float,
    min_y: float,
    max_y: float,
    tolerance: float,
) -> list[Line]:
    """
    生成 Voronoi 图的直线边。

    间距小于 tolerance 的站点视为重复点并合并。射线 (无限边) 被丢弃。

    Args:
        xs, ys: (N,) 站点坐标
        min_x, max_x, min_y, max_y: 裁剪包围盒
        tolerance: 站点合并容差

    Returns:
        edges: 裁剪后的 Voronoi 边列表。输入退化 (共线、点数不足) 时为空。
    """
    sites = np.column_stack([xs, ys]).astype(np.float64)
    _, idx = np.unique(np.round(sites / tolerance), axis=0, return_index=True)
    sites = sites[np.sort(idx)]

    if len(sites) < 4:
        logger.warning("too few voronoi sites: %d", len(sites))
        return []

    try:
        vor = Voronoi(sites)
    except QhullError as exc:
        logger.warning("voronoi partitioning failed: %s", exc)
        return []

    edges = []
    for ridge in vor.ridge_vertices:
        if -1 in ridge:
            continue
        clipped = clip_segment(vor.vertices[ridge[0]], vor.vertices[ridge[1]], min_x, max_x, min_y, max_y)
        if clipped is not None:
            edges.append(Line(*clipped))

    return edges
