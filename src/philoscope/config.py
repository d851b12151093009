"""
Engine configuration for philoscope.

This module defines the EngineConfig dataclass that captures the configurable
parameters of the scoring engine, and build_engine() which turns a config
into a ready ScoringEngine.

Environment variables (read by EngineConfig.from_env, .env files honoured):
    PHILOSCOPE_CATALOG           Path to a catalog file (default: bundled v1)
    PHILOSCOPE_RULE_CACHE_SIZE   Compiled-rule cache size (0 disables)
    PHILOSCOPE_LOG_LEVEL         Logging level for the CLI
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from philoscope.catalog.loader import CatalogHandle, load_catalog, load_default_catalog
from philoscope.core.evaluator import DEFAULT_CACHE_SIZE, RuleEvaluator
from philoscope.scoring.engine import ScoringEngine

ENV_CATALOG = "PHILOSCOPE_CATALOG"
ENV_RULE_CACHE_SIZE = "PHILOSCOPE_RULE_CACHE_SIZE"
ENV_LOG_LEVEL = "PHILOSCOPE_LOG_LEVEL"


@dataclass
class EngineConfig:
    """
    Configuration for the philosophy scoring engine.

    Attributes:
        catalog_path: Catalog file to load. None selects the bundled catalog.
        rule_cache_size: Max compiled rules kept in memory. 0 disables caching.
        log_level: Logging level name used by the command-line runner.
    """

    catalog_path: Optional[Path] = None
    rule_cache_size: int = DEFAULT_CACHE_SIZE
    log_level: str = "WARNING"

    def __post_init__(self):
        """Normalize field types."""
        if isinstance(self.catalog_path, str):
            self.catalog_path = Path(self.catalog_path) if self.catalog_path else None
        if self.rule_cache_size < 0:
            raise ValueError(f"rule_cache_size must be >= 0, got {self.rule_cache_size}")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineConfig":
        """
        Create configuration from environment variables.

        Args:
            dotenv_path: Optional .env file; by default python-dotenv searches
                upward from the working directory. Existing environment
                variables win over .env values.

        Returns:
            EngineConfig populated from the environment.

        Raises:
            ValueError: If PHILOSCOPE_RULE_CACHE_SIZE is not an integer.
        """
        load_dotenv(dotenv_path)
        raw_cache = os.environ.get(ENV_RULE_CACHE_SIZE)
        try:
            cache_size = int(raw_cache) if raw_cache else DEFAULT_CACHE_SIZE
        except ValueError as exc:
            raise ValueError(f"{ENV_RULE_CACHE_SIZE} must be an integer, got {raw_cache!r}") from exc
        return cls(
            catalog_path=os.environ.get(ENV_CATALOG) or None,
            rule_cache_size=cache_size,
            log_level=os.environ.get(ENV_LOG_LEVEL) or "WARNING",
        )


def build_engine(config: Optional[EngineConfig] = None) -> ScoringEngine:
    """
    Build a ScoringEngine from configuration.

    The catalog is loaded eagerly, so a broken catalog fails here (at
    startup) with CatalogError. The engine reads it through a CatalogHandle
    so it can be reloaded later.
    """
    config = config or EngineConfig()
    if config.catalog_path is not None:
        catalog = load_catalog(config.catalog_path)
    else:
        catalog = load_default_catalog()
    return ScoringEngine(
        CatalogHandle(catalog),
        evaluator=RuleEvaluator(cache_size=config.rule_cache_size),
    )
