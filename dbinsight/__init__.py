"""
DB Insight - Database Structure and Health Analysis

Introspects a relational database and derives column statistics,
a weighted health score and a schema graph layout.
"""

__version__ = "1.0.0"
__author__ = "DB Insight Team"

from dbinsight.config import InsightConfig
from dbinsight.core.pipeline import introspect, analyze, score, layout, run_full_pass

__all__ = [
    "InsightConfig",
    "introspect",
    "analyze",
    "score",
    "layout",
    "run_full_pass",
    "__version__",
]
