"""Demo database for DB Insight."""

from dbinsight.demo.sample_db import create_sample_database

__all__ = ["create_sample_database"]
