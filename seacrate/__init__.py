"""Secret management with Shamir-sealed encryption keys, SQLite storage and an HTTP API."""

__version__ = "0.1.0"