"""Pure swap math for constant-product pairs."""

from cpamm.amm.calculator import ConstantProductCalculator, default_calculator

__all__ = [
    "ConstantProductCalculator",
    "default_calculator",
]
