"""
Table-level data access. Each repository takes an open aiosqlite connection
so the caller decides whether a call runs inside a write transaction.
"""
