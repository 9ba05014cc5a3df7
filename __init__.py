"""
trochoidal_peeling - 型腔摆线 (剥离式) 铣削核心算法库

对任意二维型腔：
1. 由边界采样点的 Voronoi 图近似中轴，构建远离壁面的骨架分支树
2. 沿骨架布置相互重叠的刀位圆 (切片)，计算切入深度并裁剪重复切削的圆弧
"""

from .algorithm import PocketSkeleton
from .core.medial_builder import BuildFailure, MedialBuildError
from .core.slice import Slice, SlicePlacement

__version__ = "0.1.0"
__all__ = ["PocketSkeleton", "Slice", "SlicePlacement", "BuildFailure", "MedialBuildError"]
