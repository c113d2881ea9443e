"""Worker tasks, event bus, shared navigation state and a TCP message gateway."""

__version__ = "0.1.0"