"""Presentation-independent helpers."""
