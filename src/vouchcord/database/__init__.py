"""
Database package for Vouchcord.

- **db_connection.py**: the long-lived aiosqlite connection with a
  serialised write transaction helper.
- **db_schema.py**: table and index creation.
- **database.py**: the Database coordinator routing record and settings
  operations to the repositories.

Public API:
    - database: Global Database instance
"""
