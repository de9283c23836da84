"""Record storage used by the engines and services."""

from .interface import Store
from .sql_store import SqlStore

__all__ = ["Store", "SqlStore"]
