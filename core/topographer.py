"""
topographer - 型腔区域拓扑查询

基于 shapely 实现区域判定与壁面距离查询：
1. 线段是否完全位于型腔内部 (带容差)
2. 点到最近壁面 (外轮廓或岛屿) 的距离
3. 沿边界等距采样，为中轴构建提供采样点
"""

import numpy as np
from shapely.geometry import LineString, MultiPolygon, Point, Polygon
from shapely.prepared import prep

from ..utils.geometry import Line


class Topographer:
    """
    型腔区域查询器。

    Attributes:
        region: 型腔区域 (可带岛屿的 Polygon 或 MultiPolygon)
    """

    def __init__(self, region: Polygon | MultiPolygon):
        if region.is_empty:
            raise ValueError("Region is empty")
        self.region = region
        self._walls = region.boundary
        self._inflated: dict[float, object] = {}

    def _inflated_region(self, tolerance: float):
        # 按容差缓存外扩后的预处理几何
        prepared = self._inflated.get(tolerance)
        if prepared is None:
            geom = self.region.buffer(tolerance) if tolerance > 0 else self.region
            prepared = prep(geom)
            self._inflated[tolerance] = prepared
        return prepared

    def is_line_inside_region(self, line: Line, tolerance: float) -> bool:
        """
        判断线段是否完全位于型腔内部 (含边界，外扩 tolerance)。

        Args:
            line: 待判定线段，退化为点时按点判定
            tolerance: 判定容差

        Returns:
            线段全部落在区域内时为 True
        """
        if line.length() < tolerance * 1e-6:
            geom = Point(line.p1)
        else:
            geom = LineString([line.p1, line.p2])
        return self._inflated_region(tolerance).covers(geom)

    def get_dist_to_wall(self, pt: np.ndarray) -> float:
        """点到最近壁面的距离。"""
        return float(self._walls.distance(Point(pt[0], pt[1])))

    def sample_boundary(self, step: float) -> np.ndarray:
        """
        沿外轮廓与岛屿轮廓等距采样。

        Args:
            step: 采样间距

        Returns:
            samples: (N, 2) 采样点数组
        """
        if step <= 0:
            raise ValueError(f"Sample step must be positive, got {step}")

        polygons = self.region.geoms if isinstance(self.region, MultiPolygon) else [self.region]
        samples = []
        for polygon in polygons:
            for ring in [polygon.exterior, *polygon.interiors]:
                n = max(int(np.ceil(ring.length / step)), 3)
                for d in np.linspace(0.0, ring.length, n, endpoint=False):
                    pt = ring.interpolate(d)
                    samples.append((pt.x, pt.y))
        return np.array(samples)

    def __repr__(self) -> str:
        minx, miny, maxx, maxy = self.region.bounds
        return f"Topographer(bounds=({minx:.2f}, {miny:.2f}, {maxx:.2f}, {maxy:.2f}), area={self.region.area:.2f})"
