"""
config-governance — planning primitives

File: src/config_governance/planning/__init__.py
Last updated: 2026-10-19

Purpose
- Graph primitives shared by the migration planner and the roadmap validator.

Functional requirements
- Cycle detection must be a pure function of the graph; traversal state is
  owned by a single call.
"""

from __future__ import annotations

from config_governance.planning.dependency_graph import Cycle, DependencyGraph, detect_cycles

__all__ = ["Cycle", "DependencyGraph", "detect_cycles"]
