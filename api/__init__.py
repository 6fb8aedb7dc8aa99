"""HTTP API for the SQL query agent."""

__version__ = "0.1.0"
