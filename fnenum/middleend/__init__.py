"""Middleend package - synthesizes the union from validated signatures."""

from .synthesis import synthesize_enum

__all__ = ["synthesize_enum"]
