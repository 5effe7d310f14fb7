from .refinement import equitable_partition, joint_coloring, color_classes
from .oracle import IsomorphismOracle, is_isomorphic, find_isomorphism

__all__ = [
    "equitable_partition",
    "joint_coloring",
    "color_classes",
    "IsomorphismOracle",
    "is_isomorphic",
    "find_isomorphism",
]
