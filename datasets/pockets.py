"""
pockets - 参考型腔数据

数据说明:
一组简单的二维型腔，用于验证中轴构建与切片计算。
- 矩形型腔 100×50，中轴为长轴中心线两端接四条对角线
- 圆形型腔，中轴退化为圆心
- 窄槽，宽度小于刀具直径，无可用起点
- 带圆形岛屿的方形型腔，中轴绕岛屿成环
"""

from dataclasses import dataclass

from shapely.geometry import Point, Polygon, box


@dataclass
class PocketConstraints:
    """型腔加工参数"""

    tool_radius: float = 5.0  # 刀具半径 (mm)
    general_tolerance: float = 0.01  # 通用距离容差 (mm)
    sample_step: float = 1.0  # 边界采样间距 (mm)
    end_clearance: float = 0.5  # 切片圆弧端部保留弦长 (mm)


def rectangle_pocket() -> tuple[Polygon, PocketConstraints]:
    """
    获取 100×50 矩形型腔。

    Returns:
        region: 型腔区域，左下角位于原点
        constraints: 加工参数
    """
    return box(0.0, 0.0, 100.0, 50.0), PocketConstraints()


def circular_pocket(radius: float = 20.0) -> tuple[Polygon, PocketConstraints]:
    """
    获取以原点为圆心的圆形型腔。

    Args:
        radius: 型腔半径 (mm)
    """
    region = Point(0.0, 0.0).buffer(radius, quad_segs=64)
    return region, PocketConstraints(tool_radius=2.0, sample_step=0.5)


def narrow_slot() -> tuple[Polygon, PocketConstraints]:
    """获取 100×8 窄槽，宽度小于刀具直径 10。"""
    return box(0.0, 0.0, 100.0, 8.0), PocketConstraints()


def island_pocket() -> tuple[Polygon, PocketConstraints]:
    """获取 80×80 方形型腔，中心带半径 15 的圆形岛屿。"""
    island = Point(40.0, 40.0).buffer(15.0, quad_segs=32)
    region = Polygon(
        [(0.0, 0.0), (80.0, 0.0), (80.0, 80.0), (0.0, 80.0)],
        holes=[list(island.exterior.coords)[::-1]],
    )
    return region, PocketConstraints(tool_radius=4.0)


if __name__ == "__main__":
    for name, factory in [
        ("矩形", rectangle_pocket),
        ("圆形", circular_pocket),
        ("窄槽", narrow_slot),
        ("岛屿", island_pocket),
    ]:
        region, constraints = factory()
        minx, miny, maxx, maxy = region.bounds
        print(f"=== {name}型腔 ===")
        print(f"包围盒: X[{minx:.1f}, {maxx:.1f}] Y[{miny:.1f}, {maxy:.1f}] mm")
        print(f"面积: {region.area:.2f} mm², 岛屿数: {len(region.interiors)}")
        print(f"刀具半径: {constraints.tool_radius} mm\n")
