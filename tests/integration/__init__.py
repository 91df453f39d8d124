"""
config-governance — integration test package

File: tests/integration/__init__.py
Last updated: 2026-10-19

Purpose
- Test package marker for end-to-end CLI contracts.

Functional requirements
- Must not touch the checked-in ``config/`` documents; tests work on copies.
"""
