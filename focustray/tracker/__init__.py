"""Sampling loop and process entry point."""
from .loop import SamplingLoop

__all__ = ['SamplingLoop']
