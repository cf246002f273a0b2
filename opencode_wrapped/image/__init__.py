"""Rendering of the shareable PNG image."""
