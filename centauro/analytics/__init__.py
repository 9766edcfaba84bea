"""
Analytics used by the theory and tactics pipelines.
"""

from .blunder import BlunderDetector, PunishmentBuilder, detect_blunder
from .frequency import MainLineSelector, MoveFrequencyTree, build_move_tree, select_main_lines

__all__ = [
    "BlunderDetector",
    "PunishmentBuilder",
    "detect_blunder",
    "MainLineSelector",
    "MoveFrequencyTree",
    "build_move_tree",
    "select_main_lines",
]
