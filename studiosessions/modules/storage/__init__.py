"""
Storage Module - Black Box Interface

Purpose: Execute parameterized SQL against the relational store
Interface: QueryExecutor.fetch_all(), fetch_one(), execute(), run_in_transaction()
Hidden: SQLAlchemy engine, connection pooling, placeholder translation

Can be replaced with any executor that accepts SQL with $1..$n positional
placeholders and returns rows as dicts.
"""

from .executor import QueryExecutor, Transaction
from .schema import CONNECTION_TYPES, SESSION_STATUSES, Base

__all__ = ["Base", "CONNECTION_TYPES", "QueryExecutor", "SESSION_STATUSES", "Transaction"]
