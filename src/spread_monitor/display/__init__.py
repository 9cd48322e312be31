"""Terminal presentation of ranked spreads."""

from spread_monitor.display.renderer import ConsoleRenderer, build_view

__all__ = ["ConsoleRenderer", "build_view"]
