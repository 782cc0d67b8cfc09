"""
Shared fixtures: the foo.h header parsed through libclang, its curated
tables, and helpers for building small declarations by hand.
"""

from pathlib import Path

import pytest

from gencgo.codegen import CodeGenerator
from gencgo.ir import CType, FunctionDecl, GenConfig, Param
from gencgo.ir_builder import build_model
from gencgo.parser import parse_header
from gencgo.tables import load_tables
from gencgo.type_mapper import TypeMapper

TESTS_DIR = Path(__file__).resolve().parent
HEADERS_DIR = TESTS_DIR / "headers"
TABLES_DIR = TESTS_DIR / "tables"

FOO_HEADER = HEADERS_DIR / "foo.h"
FOO_TABLES = TABLES_DIR / "foo.json"


def func(name, *params, ret=CType("void")):
    """FunctionDecl from (name, CType) pairs."""
    return FunctionDecl(
        name=name,
        return_type=ret,
        params=tuple(Param(name=n, type=t, position=i) for i, (n, t) in enumerate(params)),
    )


@pytest.fixture
def config():
    return GenConfig(package_name="foo", header_include="foo.h", symbol_prefix="foo")


@pytest.fixture(scope="session")
def foo_ast():
    return parse_header(FOO_HEADER)


@pytest.fixture
def foo_model(foo_ast, config):
    return build_model(foo_ast, config)


@pytest.fixture
def foo_tables():
    return load_tables(FOO_TABLES)


@pytest.fixture
def foo_codegen(foo_model, foo_tables):
    return CodeGenerator(foo_model, foo_tables, TypeMapper(foo_tables))

