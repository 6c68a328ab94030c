"""Public API surface for qp_ui."""

from qp_ui.cli import app, main
from qp_ui.console import ConsolePresenter

__all__ = ["ConsolePresenter", "app", "main"]
