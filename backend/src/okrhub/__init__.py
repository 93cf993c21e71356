"""okrhub - team objectives and key results tracking."""

__version__ = "0.1.0"
