"""
algorithm - 型腔摆线 (剥离式) 铣削骨架生成主算法

该模块实现 PocketSkeleton 类：对型腔边界采样，构建远离壁面的中轴分支树，
并给出起点处的最大根切片，供下游刀路拼接使用。
"""

import logging

import numpy as np
from shapely.geometry import MultiPolygon, Polygon

from .core.branch import MedialBranch
from .core.medial_builder import MedialBuilder
from .core.slice import Slice
from .core.topographer import Topographer
from .utils.geometry import RotationDirection


class PocketSkeleton:
    """
    型腔骨架生成器。

    Attributes:
        region: 型腔区域 (可带岛屿)
        tool_radius: 刀具半径，即骨架点到壁面的最小距离
        general_tolerance: 通用距离容差
        topographer: 区域查询器
        samples: (N, 2) 边界采样点
        root: 中轴分支树的根
    """

    def __init__(
        self,
        region: Polygon | MultiPolygon,
        tool_radius: float,
        general_tolerance: float = 0.01,
        sample_step: float | None = None,
        min_branch_len: float | None = None,
        startpoint: np.ndarray | None = None,
        startpoint_is_a_hint: bool = False,
        logger: logging.Logger | None = None,
    ):
        """
        初始化骨架生成器。

        Args:
            region: 型腔区域
            tool_radius: 刀具半径
            general_tolerance: 通用距离容差
            sample_step: 边界采样间距，默认取刀具半径的 1/5
            min_branch_len: 短枝剪除阈值，默认取 general_tolerance
            startpoint: 用户指定起点，None 时自动选取
            startpoint_is_a_hint: 起点仅作提示
            logger: 诊断日志
        """
        if tool_radius <= 0:
            raise ValueError(f"Tool radius must be positive, got {tool_radius}")

        self.region = region
        self.tool_radius = tool_radius
        self.general_tolerance = general_tolerance
        self.sample_step = sample_step if sample_step is not None else tool_radius / 5
        self.min_branch_len = min_branch_len
        self.startpoint = None if startpoint is None else np.asarray(startpoint, dtype=np.float64)
        self.startpoint_is_a_hint = startpoint_is_a_hint
        self.logger = logger

        self.topographer: Topographer | None = None
        self.samples: np.ndarray | None = None
        self.root: MedialBranch | None = None

    def fit(self):
        """
        构建中轴树。返回 self 以支持链式调用。

        Raises:
            MedialBuildError: 无法确定树的起点
        """
        self.topographer = Topographer(self.region)
        self.samples = self.topographer.sample_boundary(self.sample_step)

        builder = MedialBuilder(
            self.general_tolerance,
            self.tool_radius,
            min_branch_len=self.min_branch_len,
            logger=self.logger,
        )
        root = MedialBranch()
        builder.build(root, self.topographer, self.samples, self.startpoint, self.startpoint_is_a_hint)
        self.root = root

        return self

    @property
    def branches(self) -> list[MedialBranch]:
        return list(self.root.traverse()) if self.root is not None else []

    def leaves(self) -> list[MedialBranch]:
        return self.root.leaves() if self.root is not None else []

    @property
    def length(self) -> float:
        """分支树总长度。"""
        return sum(b.shallow_distance for b in self.branches)

    def root_slice(self, direction: RotationDirection = RotationDirection.CCW) -> Slice:
        """
        起点处的根切片：刀心圆半径取起点壁面距离减去刀具半径。

        Args:
            direction: 铣削方向

        Returns:
            根切片 (整圆)
        """
        if self.root is None:
            raise RuntimeError("Skeleton is not fitted")
        center = self.root.start
        radius = self.topographer.get_dist_to_wall(center) - self.tool_radius
        return Slice(None, center, max(radius, self.general_tolerance), direction)

    def __repr__(self) -> str:
        status = "fitted" if self.root is not None else "not fitted"
        if self.root is None:
            return f"PocketSkeleton(tool_radius={self.tool_radius}, {status})"
        return (
            f"PocketSkeleton(tool_radius={self.tool_radius}, branches={len(self.branches)}, "
            f"length={self.length:.2f}, {status})"
        )


if __name__ == "__main__":
    from trochoidal_peeling.datasets import rectangle_pocket

    region, constraints = rectangle_pocket()

    print("=== 型腔骨架生成测试 ===")
    skeleton = PocketSkeleton(
        region,
        constraints.tool_radius,
        general_tolerance=constraints.general_tolerance,
        sample_step=constraints.sample_step,
    ).fit()

    print(skeleton)
    print(f"边界采样点数: {len(skeleton.samples)}")
    print(f"树起点: {skeleton.root.start}")
    for leaf in skeleton.leaves():
        print(f"  叶分支终点: {leaf.end}, 深度距离 {leaf.deep_distance:.2f}")

    root_slice = skeleton.root_slice()
    print(f"\n根切片: {root_slice}")

    # 沿根分支前进一步生成子切片
    branch = skeleton.root.children[0] if skeleton.root.children else skeleton.root
    step_dir = branch.points[-1] - branch.points[0]
    step_dir = step_dir / np.linalg.norm(step_dir)
    center = root_slice.center + step_dir * constraints.tool_radius * 0.5
    child = Slice(root_slice, center, root_slice.radius, tool_r=constraints.tool_radius)
    print(f"子切片: {child}")
    print(f"  入口 TED={child.entry_ted:.3f}, 中点 TED={child.mid_ted:.3f}")

    # 再前进一步，按已有切片裁剪重复切削的圆弧
    grandchild = Slice(child, child.center + step_dir * constraints.tool_radius * 0.5, child.radius,
                       tool_r=constraints.tool_radius)
    grandchild.refine([child, root_slice], constraints.end_clearance, constraints.tool_radius)
    print(f"孙切片: {grandchild}")
    for arc in grandchild.segments:
        print(f"  {arc}")
