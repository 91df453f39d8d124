"""
config-governance — package root

File: src/config_governance/__init__.py
Last updated: 2026-10-19

Purpose
- Govern a fleet of versioned JSON configuration documents: dependency-graph
  validation, migration planning and apply, roadmap and policy schema checks.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
