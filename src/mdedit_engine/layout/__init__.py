"""Caret estimation against an external layout oracle."""

from .estimator import CaretEstimator, LayoutContext, Viewport
from .monospace import MonospaceOracle
from .oracle import LayoutOracle, OracleAdapter, OracleAdapterPool, StyleSignature

__all__ = [
    "CaretEstimator",
    "LayoutContext",
    "LayoutOracle",
    "MonospaceOracle",
    "OracleAdapter",
    "OracleAdapterPool",
    "StyleSignature",
    "Viewport",
]
