"""StatsProxy - authenticated proxy for per-website visitor statistics."""

__version__ = "0.1.0"
