"""Terminal draw targets, multi-bar layout, progress-tracking wrappers and human-readable formatting."""

__version__ = "0.17.11"

__all__ = ["draw_target", "format", "iter", "lines", "multi", "multi_state"]