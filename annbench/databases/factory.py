"""
Registry of database adapters.

Adapters register their class under a name; the CLI and runner resolve names
to classes and call the class-level `build` / `load` constructors.
"""

import warnings
from typing import Any, Callable, Dict, List, Optional, Type

from annbench.core.base import VectorDatabase
from annbench.core.types import IndexConfig


# Registry of available database adapters
_DATABASE_REGISTRY: Dict[str, Type] = {}

_ADAPTER_MODULES = {
    "faiss-ivfpq": "annbench.databases.faiss_adapter",
}


def register_database(name: str) -> Callable:
    """
    Decorator to register a database adapter class.

    Args:
        name: Name to register the database under

    Example:
        @register_database("faiss-ivfpq")
        class FaissIVFPQDatabase:
            ...
    """

    def decorator(cls: Type) -> Type:
        _DATABASE_REGISTRY[name.lower()] = cls
        return cls

    return decorator


def get_database_class(name: str) -> Type:
    """
    Resolve a database adapter class by name.

    Raises:
        ValueError: If database is not registered
    """
    name_lower = name.lower()

    if name_lower not in _DATABASE_REGISTRY:
        _import_adapter(name_lower)

    if name_lower not in _DATABASE_REGISTRY:
        available = ", ".join(list_available_databases())
        raise ValueError(f"Unknown database: {name}. Available databases: {available}")

    return _DATABASE_REGISTRY[name_lower]


def build_database(
    name: str,
    corpus,
    index_config: IndexConfig,
    config: Optional[Dict[str, Any]] = None,
) -> VectorDatabase:
    """Build a database of adapter `name` over `corpus`."""
    cls = get_database_class(name)
    return cls.build(
        corpus,
        index_config.num_partitions,
        index_config.num_divisions,
        index_config.num_codes,
        config=config,
    )


def load_database(name: str, path: str, config: Optional[Dict[str, Any]] = None) -> VectorDatabase:
    """Load a saved database of adapter `name` from `path`."""
    return get_database_class(name).load(path, config=config)


def list_available_databases() -> List[str]:
    """
    List all registered database adapters.

    Returns:
        List of database names
    """
    for name in _ADAPTER_MODULES:
        _import_adapter(name)
    return sorted(_DATABASE_REGISTRY.keys())


def _import_adapter(name: str) -> None:
    """Import a database adapter module by name."""
    module_name = _ADAPTER_MODULES.get(name.lower())
    if module_name:
        try:
            __import__(module_name)
        except ImportError as e:
            # The backing library may not be installed
            warnings.warn(f"Could not import {name} adapter: {e}")
