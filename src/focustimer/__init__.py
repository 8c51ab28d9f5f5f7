"""focustimer: a crash-safe focus interval timer."""

__version__ = "0.1.0"
