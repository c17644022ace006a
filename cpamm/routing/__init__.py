"""Routing through pairs: address derivation, multi-hop amounts, router."""

from cpamm.routing import library
from cpamm.routing.router import Router

__all__ = ["library", "Router"]
