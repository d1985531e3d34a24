"""Shared pytest fixtures for LQL unit and integration tests."""
from __future__ import annotations

import pytest

from lql import CompileOptions, SchemaSnapshot
from lql.compile.base import SQLDialect
from lql.compile.registry import DialectFactory
from tests.fixtures import load_schema_snapshot

ALL_TARGETS = ["sqlite", "postgres", "sqlserver"]


@pytest.fixture(scope="session")
def snapshot() -> SchemaSnapshot:
    """Canonical schema snapshot shared across all tests."""
    return load_schema_snapshot()


@pytest.fixture(scope="session", params=ALL_TARGETS)
def any_dialect(request: pytest.FixtureRequest) -> SQLDialect:
    """Each built-in dialect in turn."""
    return DialectFactory.create(request.param)


@pytest.fixture(scope="session")
def native_options() -> CompileOptions:
    """Compile options that emit driver-native placeholders."""
    return CompileOptions(param_style="native")
