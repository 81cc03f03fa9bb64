"""Preview the effect of a filter command as a unified diff."""

__version__ = "0.1.0"
