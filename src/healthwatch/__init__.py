"""healthwatch - component health monitoring core."""

__version__ = "0.1.0"
