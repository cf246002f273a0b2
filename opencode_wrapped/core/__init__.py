"""
Core modules for OpenCode Wrapped.

This package contains token accounting, model pricing, calendar helpers
and the yearly statistics engine.
"""
