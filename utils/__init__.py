"""
Shared helpers for the spin wheel engine

Modules:
- logging_config: Console and rotating file logging setup
- error_helpers: Exception logging decorators and context managers
"""
