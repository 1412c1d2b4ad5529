"""
Adapters for the ANN databases under test.

This module provides unified interfaces for:
    - FAISS IVF-PQ (faiss-ivfpq)
"""

from annbench.databases.factory import (
    build_database,
    get_database_class,
    list_available_databases,
    load_database,
    register_database,
)

__all__ = [
    "build_database",
    "get_database_class",
    "list_available_databases",
    "load_database",
    "register_database",
]
