import logging

import pytest

from gencgo.grouping import resolve_group, resolve_groups
from gencgo.ir import CType, DeclarationModel, GenConfig
from gencgo.tables import Tables, TypeMapping
from gencgo.type_mapper import TypeMapper

from conftest import func

HANDLE = CType("h_t", is_handle=True)
INT = CType("int", is_scalar=True)


@pytest.fixture
def model():
    m = DeclarationModel(GenConfig(package_name="h", header_include="h.h"))
    m.add(func("hCreate", ("out", CType("h_t", pointers=1, is_handle=True))))
    m.add(func("hMake", ret=HANDLE))
    m.add(func("hDestroy", ("h", HANDLE)))
    m.add(func("hSetA", ("h", HANDLE), ("a", INT)))
    m.add(func("hSetB", ("h", HANDLE), ("b", INT), ("c", INT)))
    return m


def _tables(**overrides):
    base = dict(
        go_types={"h_t": TypeMapping("H", is_wrapper=True)},
        setters={"h_t": ["hSetA"]},
        creations={"h_t": ["hCreate"]},
        destructions={"h_t": ["hDestroy"]},
    )
    base.update(overrides)
    return Tables(**base)


def _resolve(model, tables):
    return resolve_group(model, tables, TypeMapper(tables), "h_t")


def test_single_setter_group(model):
    group = _resolve(model, _tables())
    assert group.go_type == "H"
    assert group.create == "hCreate"
    assert group.destroy == "hDestroy"
    assert group.setter_decl.name == "hSetA"
    assert not group.multi_setter
    assert not group.create_returns_handle


def test_create_returning_the_handle(model):
    group = _resolve(model, _tables(creations={"h_t": ["hMake", "hCreate"]}))
    assert group.create == "hMake"
    assert group.create_returns_handle


def test_multi_setter_shape_comes_from_header_order(model):
    # hSetA is declared before hSetB
    group = _resolve(model, _tables(setters={"h_t": ["hSetMissing", "hSetB", "hSetA"]}))
    assert group.multi_setter
    assert group.setter_decl.name == "hSetA"
    assert group.setters == ("hSetMissing", "hSetB", "hSetA")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"go_types": {}}, "no Go type mapping"),
        ({"ignored": {"hSetA"}}, "is ignored"),
        ({"setters": {"h_t": ["hSetMissing"]}}, "none of its setters"),
        ({"creations": {}}, "No Create/Destroy"),
        ({"destructions": {"h_t": []}}, "No Create/Destroy"),
    ],
)
def test_skipped_groups(model, caplog, overrides, message):
    caplog.set_level(logging.INFO, logger="gencgo.grouping")
    assert _resolve(model, _tables(**overrides)) is None
    assert message in caplog.text


def test_unknown_create_defaults_to_out_parameter(model, caplog):
    group = _resolve(model, _tables(creations={"h_t": ["hNew"]}))
    assert not group.create_returns_handle
    assert "not found in header" in caplog.text


def test_groups_follow_table_order(model):
    model.add(func("gSet", ("g", CType("g_t", is_handle=True))))
    tables = _tables(
        go_types={"h_t": TypeMapping("H", True), "g_t": TypeMapping("G", True)},
        setters={"g_t": ["gSet"], "x_t": ["xSet"], "h_t": ["hSetA"]},
        creations={"h_t": ["hCreate"], "g_t": ["gCreate"]},
        destructions={"h_t": ["hDestroy"], "g_t": ["gDestroy"]},
    )
    groups = resolve_groups(model, tables, TypeMapper(tables))
    assert [g.c_type for g in groups] == ["g_t", "h_t"]
