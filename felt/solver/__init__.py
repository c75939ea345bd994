"""Solver engine module."""

from .strategy import InfoSet, InfoSetTable, make_info_set_key
from .cfr import CFRSolver, SolverConfig, SolverResult, Recommendation, solve, get_recommendation

__all__ = [
    "InfoSet",
    "InfoSetTable",
    "make_info_set_key",
    "CFRSolver",
    "SolverConfig",
    "SolverResult",
    "Recommendation",
    "solve",
    "get_recommendation",
]
