"""wiwo - report a user's GitHub activity over a time window."""

__version__ = "0.1.0"
