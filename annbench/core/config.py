"""
Configuration management for the ANN benchmark harness.

This module handles loading, validating, and accessing configuration from YAML files.
"""

import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Configuration Models
# =============================================================================

TIME_UNITS: Dict[str, float] = {"s": 1.0, "ms": 1_000.0, "us": 1_000_000.0}


class ExperimentConfig(BaseModel):
    """Configuration for experiment execution."""

    seed: int = Field(default=42, description="Random seed for reproducibility")
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class DatasetConfig(BaseModel):
    """Configuration for dataset loading."""

    dimensions: Optional[int] = Field(
        default=None, ge=1, description="Expected vector dimensions (None: infer from file)"
    )


class BuildConfig(BaseModel):
    """Configuration for index construction."""

    database: str = Field(default="faiss-ivfpq", description="Database adapter")
    num_partitions: int = Field(default=2048, ge=1, description="Number of partitions")
    num_divisions: int = Field(default=8, ge=1, description="Number of subvector divisions")
    num_codes: int = Field(default=256, ge=2, description="Number of codes per division")


class QueryConfig(BaseModel):
    """Configuration for query execution."""

    k: int = Field(default=100, ge=0, description="Number of nearest neighbors")
    nprobe: int = Field(default=10, ge=1, description="Number of partitions to search")


class BatchConfig(BaseModel):
    """Configuration for batch query runs."""

    concurrency: int = Field(default=8, ge=1, description="Queries in flight (concurrent mode)")
    skip_failures: bool = Field(default=False, description="Skip failed queries instead of aborting")
    progress_every: int = Field(default=100, ge=1, description="Progress log interval")
    flat_block_size: int = Field(default=65536, ge=1, description="Corpus rows per flat-search block")


class OutputConfig(BaseModel):
    """Configuration for output."""

    time_unit: str = Field(default="ms", description="Time unit of printed latencies")

    @field_validator("time_unit")
    @classmethod
    def validate_time_unit(cls, v: str) -> str:
        if v not in TIME_UNITS:
            raise ValueError(f"Unknown time unit: {v}. Available: {', '.join(TIME_UNITS)}")
        return v


class Config(BaseModel):
    """Main configuration model."""

    experiment: ExperimentConfig = Field(default_factory=ExperimentConfig)
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Paths
    config_dir: Path = Field(default=Path("./config"), exclude=True)

    @field_validator("config_dir", mode="before")
    @classmethod
    def validate_config_dir(cls, v):
        return Path(v) if isinstance(v, str) else v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def default_config_dir() -> Path:
    """Return the `config` directory shipped next to the package."""
    return Path(__file__).parent.parent.parent / "config"


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    config_dir: Optional[Union[str, Path]] = None,
) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to main configuration file (default: config/default.yaml)
        config_dir: Directory containing configuration files

    Returns:
        Config object with loaded configuration

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        ValueError: If configuration is invalid
    """
    # Determine config directory
    if config_dir is None:
        config_dir = default_config_dir()
    else:
        config_dir = Path(config_dir)

    # Determine config file path
    if config_path is None:
        config_path = config_dir / "default.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_dict = yaml.safe_load(f) or {}

    config_dict["config_dir"] = config_dir

    return Config(**config_dict)


def get_default_config() -> Config:
    """
    Get default configuration.

    Falls back to the built-in defaults when no config file is shipped.
    """
    try:
        return load_config()
    except FileNotFoundError:
        return Config()


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def apply_overrides(config: Config, overrides: Dict[str, Any]) -> Config:
    """
    Return a validated copy of `config` with nested overrides applied.

    Keys whose value is None are ignored, so unset CLI options keep the
    configured value.

    Example:
        apply_overrides(cfg, {"query": {"k": 10, "nprobe": None}})
    """
    cleaned = {
        section: {key: value for key, value in values.items() if value is not None}
        for section, values in overrides.items()
    }
    merged = merge_configs(config.model_dump(), cleaned)
    merged["config_dir"] = config.config_dir
    return Config(**merged)


# =============================================================================
# Hardware Detection
# =============================================================================


def detect_hardware() -> Dict[str, Any]:
    """
    Detect hardware configuration.

    Returns:
        Dictionary with hardware information
    """
    import cpuinfo
    import psutil

    cpu_info = cpuinfo.get_cpu_info()
    memory = psutil.virtual_memory()

    return {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
        "cpu": {
            "brand": cpu_info.get("brand_raw", "Unknown"),
            "arch": cpu_info.get("arch", "Unknown"),
            "cores_physical": psutil.cpu_count(logical=False),
            "cores_logical": psutil.cpu_count(logical=True) or os.cpu_count(),
            "frequency_mhz": cpu_info.get("hz_actual_friendly", "Unknown"),
        },
        "memory": {
            "total_gb": memory.total / (1024**3),
            "available_gb": memory.available / (1024**3),
        },
    }
