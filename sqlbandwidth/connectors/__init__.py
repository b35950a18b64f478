"""
Database connectors.
"""

from sqlbandwidth.connectors.postgres_connection import PostgresConnectionProvider

__all__ = ["PostgresConnectionProvider"]
