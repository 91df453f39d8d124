"""UI package exports for the CLI and its plain-text renderer."""

from config_governance.ui.cli import build_parser, run_cli
from config_governance.ui.render import CLIRenderer, create_renderer

__all__ = ["CLIRenderer", "build_parser", "create_renderer", "run_cli"]
