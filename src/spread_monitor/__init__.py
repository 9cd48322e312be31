"""Real-time spot vs perpetual futures spread monitor."""

__version__ = "0.1.0"
