"""Calendar Sync Service application package."""

__version__ = "1.0.0"
