"""
Liberdus Explorer - Server Package

Data-access and aggregation service for the network explorer.
Includes SQLite storage, bulk loading, daily stats aggregation and REST API.
"""

__version__ = "0.1.0"

__all__ = [
    "aggregation",
    "codec",
    "config",
    "loader",
    "server",
    "storage",
    "types",
]
