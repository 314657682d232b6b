"""Utilities."""

from chronoloop.utils.rng import RunSeeds

__all__ = ["RunSeeds"]
