"""
Configuration management for DB Insight.

Handles all configuration options including the database file,
LLM settings, analysis thresholds and graph layout geometry.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
import os

import yaml


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be used."""
    pass


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    db_path: Optional[str] = None  # None or ":memory:" for an in-memory database
    connection_timeout: int = 30

    def get_connection_string(self) -> str:
        """Generate SQLAlchemy connection string."""
        if not self.db_path or self.db_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.db_path}"

    @property
    def is_memory(self) -> bool:
        return not self.db_path or self.db_path == ":memory:"


@dataclass
class LLMConfig:
    """LLM configuration for the database assistant."""
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    temperature: float = 0.3
    max_tokens: int = 1024
    timeout: int = 60
    retry_attempts: int = 3

    def __post_init__(self):
        if not self.api_key:
            self.api_key = os.environ.get("OPENAI_API_KEY")


@dataclass
class AnalysisConfig:
    """Statistics and health-check configuration."""
    index_row_threshold: int = 100  # Tables above this size should be indexed
    outlier_std_multiplier: float = 2.0
    top_values_limit: int = 15  # Value distribution for single-column requests
    histogram_limit: int = 20
    sample_rows: int = 1  # Sample rows per table in the database summary


@dataclass
class LayoutConfig:
    """Schema graph geometry."""
    center_x: float = 400.0
    center_y: float = 300.0
    max_radius: float = 300.0
    radius_per_table: float = 40.0


@dataclass
class InsightConfig:
    """Main configuration container."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    verbose: bool = False

    # Table filtering
    include_tables: Optional[List[str]] = None
    exclude_tables: Optional[List[str]] = None

    @classmethod
    def from_yaml(cls, path: str) -> "InsightConfig":
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read configuration {path}: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {path} must be a mapping")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "InsightConfig":
        """Create config from dictionary."""
        db_data = data.get("database") or {}
        db_config = DatabaseConfig(
            db_path=db_data.get("path"),
            connection_timeout=db_data.get("connection_timeout", 30),
        )

        llm_data = data.get("llm") or {}
        llm_config = LLMConfig(
            provider=llm_data.get("provider", "openai"),
            model=llm_data.get("model", "gpt-4o-mini"),
            api_key=llm_data.get("api_key"),
            temperature=llm_data.get("temperature", 0.3),
            max_tokens=llm_data.get("max_tokens", 1024),
            timeout=llm_data.get("timeout", 60),
            retry_attempts=llm_data.get("retry_attempts", 3),
        )

        analysis_data = data.get("analysis") or {}
        analysis_config = AnalysisConfig(
            index_row_threshold=analysis_data.get("index_row_threshold", 100),
            outlier_std_multiplier=analysis_data.get("outlier_std_multiplier", 2.0),
            top_values_limit=analysis_data.get("top_values_limit", 15),
            histogram_limit=analysis_data.get("histogram_limit", 20),
            sample_rows=analysis_data.get("sample_rows", 1),
        )

        layout_data = data.get("layout") or {}
        layout_config = LayoutConfig(
            center_x=layout_data.get("center_x", 400.0),
            center_y=layout_data.get("center_y", 300.0),
            max_radius=layout_data.get("max_radius", 300.0),
            radius_per_table=layout_data.get("radius_per_table", 40.0),
        )

        return cls(
            database=db_config,
            llm=llm_config,
            analysis=analysis_config,
            layout=layout_config,
            verbose=data.get("verbose", False),
            include_tables=data.get("include_tables"),
            exclude_tables=data.get("exclude_tables"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "database": {
                "path": self.database.db_path,
            },
            "llm": {
                "provider": self.llm.provider,
                "model": self.llm.model,
                "temperature": self.llm.temperature,
            },
            "analysis": {
                "index_row_threshold": self.analysis.index_row_threshold,
                "outlier_std_multiplier": self.analysis.outlier_std_multiplier,
                "top_values_limit": self.analysis.top_values_limit,
                "histogram_limit": self.analysis.histogram_limit,
            },
            "layout": {
                "center_x": self.layout.center_x,
                "center_y": self.layout.center_y,
                "max_radius": self.layout.max_radius,
                "radius_per_table": self.layout.radius_per_table,
            },
            "include_tables": self.include_tables,
            "exclude_tables": self.exclude_tables,
        }


def create_default_config(
    db_path: Optional[str] = None,
    model: Optional[str] = None,
    verbose: bool = False,
) -> InsightConfig:
    """Factory function to create a default configuration."""

    llm_config = LLMConfig(model=model) if model else LLMConfig()

    return InsightConfig(
        database=DatabaseConfig(db_path=db_path),
        llm=llm_config,
        analysis=AnalysisConfig(),
        layout=LayoutConfig(),
        verbose=verbose,
    )
