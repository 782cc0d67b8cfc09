"""Naming heuristics and type lookups, tested on literal fixtures."""

import pytest

from gencgo.ir import CType
from gencgo.mapper import (
    enum_constant_name,
    exported,
    go_param_name,
    longest_common_prefix,
    method_name,
    receiver_name,
    snake_to_camel,
)
from gencgo.tables import Tables, TypeMapping
from gencgo.type_mapper import TypeMapper


def _derive(names):
    lcp = longest_common_prefix(names)
    return [enum_constant_name(lcp, n) for n in names]


class TestLongestCommonPrefix:
    def test_character_wise(self):
        assert longest_common_prefix(["FOO_FOO_BAR", "FOO_FOO_BAZ"]) == "FOO_FOO_BA"

    def test_single_name_is_its_own_prefix(self):
        assert longest_common_prefix(["CUDNN_DATA_FLOAT"]) == "CUDNN_DATA_FLOAT"

    def test_empty(self):
        assert longest_common_prefix([]) == ""

    def test_nothing_shared(self):
        assert longest_common_prefix(["ALPHA", "BETA"]) == ""


class TestEnumConstantName:
    def test_strips_whole_words(self):
        assert _derive(["FOO_FOO_BAR", "FOO_FOO_BAZ"]) == ["Bar", "Baz"]

    def test_multi_word_remainder(self):
        names = ["CUDNN_DATA_FLOAT", "CUDNN_DATA_DOUBLE", "CUDNN_DATA_HALF"]
        assert _derive(names) == ["Float", "Double", "Half"]

    def test_digit_led_keeps_last_prefix_letter(self):
        names = ["TENSOR_NCHW_1D", "TENSOR_NCHW_2D"]
        assert _derive(names) == ["W1d", "W2d"]

    def test_single_enumerator_keeps_its_last_word(self):
        assert _derive(["CUDNN_STATUS_SUCCESS"]) == ["Success"]

    def test_no_shared_prefix(self):
        assert _derive(["ALPHA", "BETA"]) == ["Alpha", "Beta"]

    @pytest.mark.parametrize(
        "names",
        [
            ["FOO_FOO_BAR", "FOO_FOO_BAZ"],
            ["CUDNN_DATA_FLOAT", "CUDNN_DATA_DOUBLE", "CUDNN_DATA_HALF"],
            ["LOAD_ACTION_CLEAR", "LOAD_ACTION_DONT_CARE"],
        ],
    )
    def test_idempotent(self, names):
        derived = _derive(names)
        assert _derive(derived) == derived


class TestIdentifiers:
    def test_snake_to_camel(self):
        assert snake_to_camel("DONT_CARE") == "DontCare"
        assert snake_to_camel("dont_care") == "DontCare"
        assert snake_to_camel("DontCare") == "DontCare"
        assert snake_to_camel("int8x4") == "Int8x4"

    def test_exported(self):
        assert exported("dataType") == "DataType"
        assert exported("") == ""

    def test_go_param_name(self):
        assert go_param_name("alpha", 0) == "alpha"
        assert go_param_name("type", 1) == "type_"
        assert go_param_name("", 2) == "arg2"

    def test_receiver_name(self):
        assert receiver_name("TensorDescriptor") == "t"
        assert receiver_name("*Handle") == "h"
        assert receiver_name("") == "r"

    def test_method_name(self):
        assert method_name("cudnnAddTensor", "cudnn") == "AddTensor"
        assert method_name("cudnnAddTensor") == "CudnnAddTensor"
        assert method_name("foo_get_a", "foo_") == "GetA"
        assert method_name("cudnn", "cudnn") == "Cudnn"


class TestTypeMapper:
    @pytest.fixture
    def mapper(self):
        return TypeMapper(
            Tables(
                enum_names={"dtype_t": "DataType"},
                go_types={
                    "h_t": TypeMapping("Handle", is_wrapper=True),
                    "float*": TypeMapping("[]float32"),
                    "int": TypeMapping("int32"),
                },
            )
        )

    def test_curated_table_first(self, mapper):
        info = mapper.go_type_of(CType("int", is_scalar=True))
        assert info.go_type == "int32"
        assert info.cgo_type is None

    def test_pointer_key(self, mapper):
        assert mapper.go_name_of(CType("float", pointers=1)) == "[]float32"
        assert mapper.go_name_of(CType("float")) == "float32"

    def test_bare_name_only_for_non_pointers(self, mapper):
        assert mapper.go_type_of(CType("h_t", pointers=1)) is None

    def test_enum_names(self, mapper):
        info = mapper.go_type_of(CType("dtype_t", is_scalar=True))
        assert info.go_type == "DataType"
        assert info.is_enum

    def test_builtin(self, mapper):
        info = mapper.go_type_of(CType("unsigned long"))
        assert info.go_type == "uint64"
        assert info.cgo_type == "C.ulong"

    def test_miss(self, mapper):
        assert mapper.go_type_of(CType("mystery_t")) is None
        assert mapper.go_name_of_str("mystery_t") is None

    def test_c_arg(self, mapper):
        assert mapper.c_arg("h", CType("h_t")) == "h.internal"
        assert mapper.c_arg("dt", CType("dtype_t")) == "dt.C()"
        assert mapper.c_arg("n", CType("double")) == "C.double(n)"
        assert mapper.c_arg("p", CType("void", pointers=1)) == "p"
        assert mapper.c_arg("x", CType("mystery_t")) == "x"
