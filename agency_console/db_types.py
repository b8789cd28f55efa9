"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from sqlalchemy import JSON, Numeric
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in dev/tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# UUID type that works with both databases
UUIDType = PG_UUID

# Money and percentage columns; Decimal in, Decimal out
MoneyType = Numeric(14, 2, asdecimal=True)
RateType = Numeric(7, 4, asdecimal=True)
PercentType = Numeric(6, 3, asdecimal=True)
