"""
OpenCode Wrapped.

A year-in-review summary of your OpenCode usage.
"""

__version__ = "1.0.0"
