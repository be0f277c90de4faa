"""drainhook: webhook notifications for node interruption events."""

__version__ = "0.1.0"
