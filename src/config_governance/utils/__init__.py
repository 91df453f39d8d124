"""Filesystem helpers."""

from config_governance.utils.fs import atomic_write, atomic_write_json, render_json_document

__all__ = ["atomic_write", "atomic_write_json", "render_json_document"]
