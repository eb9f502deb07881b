"""
Core infrastructure for the tendering engine.

This package provides:
- config: Configuration management (ConfigManager, get_config)
- errors: Engine exception hierarchy
- logging: structlog setup
- clock: UTC time source

Submodules are imported directly; the data models depend on ``errors`` and
``clock`` while ``config`` depends on the data models.
"""
