"""
SqlBandwidth

Measures upload and download bandwidth against a database server by writing
and reading a bulk payload through a session-scoped temporary table.
"""

__version__ = "0.1.0"
