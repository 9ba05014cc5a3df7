"""
core - 核心算法模块

包含:
- topographer: 型腔区域查询 (内部判定、壁面距离、边界采样)
- voronoi: Voronoi 边提取
- segpool: 中轴候选线段空间索引
- branch: 中轴树分支
- medial_builder: 中轴树构建
- slice: 摆线切片与圆弧裁剪
"""

from .branch import MedialBranch
from .medial_builder import BuildFailure, MedialBuilder, MedialBuildError
from .segpool import Segpool
from .slice import Slice, SliceContractError, SlicePlacement
from .topographer import Topographer
from .voronoi import generate_voronoi

__all__ = [
    "MedialBranch",
    "MedialBuilder",
    "MedialBuildError",
    "BuildFailure",
    "Segpool",
    "Slice",
    "SlicePlacement",
    "SliceContractError",
    "Topographer",
    "generate_voronoi",
]
