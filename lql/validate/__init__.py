"""LQL pipeline validation: predicate shape, dialect features, schema diagnostics."""
from lql.validate.validator import PipelineValidator

__all__ = ["PipelineValidator"]
