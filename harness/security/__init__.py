"""Cryptographically strong random values for test data generation."""

from harness.security import rng

__all__ = ["rng"]
