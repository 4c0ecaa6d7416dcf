#!/usr/bin/env python3
"""Test typed argument encoding and decoded value rendering"""

import struct

import pytest

from oscchecker.osc.arguments import (ArgumentKind, OSCArgument, encode, encode_all,
                                      render_value, render_values)
from oscchecker.osc.errors import ConversionError, ValidationError


@pytest.mark.parametrize("raw_text, expected", [
    ("42", 42),
    ("-7", -7),
    ("+3", 3),
    ("0", 0),
    ("2147483647", 2147483647),
    ("-2147483648", -2147483648),
])
def test_int_valid(raw_text, expected):
    assert encode("int", raw_text) == expected


@pytest.mark.parametrize("raw_text", ["", "abc", "4.2", " 42", "42\n", "\n42", "1_000", "٤٢", "2147483648", "-2147483649"])
def test_int_invalid(raw_text):
    with pytest.raises(ConversionError) as excinfo:
        encode(ArgumentKind.INT, raw_text)
    assert excinfo.value.field == "int"
    assert excinfo.value.input == raw_text


def test_float_rounds_to_float32():
    value = encode("float", "3.14")
    assert value == struct.unpack('>f', struct.pack('>f', 3.14))[0]
    assert value == pytest.approx(3.14, rel=1e-6)
    assert encode("float", "-1e3") == -1000.0
    assert encode("float", "inf") == float("inf")


@pytest.mark.parametrize("raw_text", ["", "pi", "1e39", " 1.0", "1.0\n", "1_0.0", "٣.١٤"])
def test_float_invalid(raw_text):
    with pytest.raises(ConversionError) as excinfo:
        encode("float", raw_text)
    assert excinfo.value.field == "float"


def test_string_is_verbatim():
    assert encode("string", "") == ""
    assert encode("string", "  hello, world \\n") == "  hello, world \\n"


@pytest.mark.parametrize("raw_text", ["1", "t", "T", "TRUE", "true", "True"])
def test_bool_true(raw_text):
    assert encode("bool", raw_text) is True


@pytest.mark.parametrize("raw_text", ["0", "f", "F", "FALSE", "false", "False"])
def test_bool_false(raw_text):
    assert encode("bool", raw_text) is False


@pytest.mark.parametrize("raw_text", ["", "yes", "tRUE", "2"])
def test_bool_invalid(raw_text):
    with pytest.raises(ConversionError):
        encode("bool", raw_text)


def test_unknown_kind():
    with pytest.raises(ValidationError):
        ArgumentKind.parse("double")
    with pytest.raises(ValidationError):
        OSCArgument("blob", "00")


def test_kind_parse_is_lenient_on_case():
    assert ArgumentKind.parse(" Float ") is ArgumentKind.FLOAT
    assert ArgumentKind.names() == ["int", "float", "string", "bool"]


def test_encode_all_stops_at_first_failure():
    """The first bad argument aborts, later ones are never looked at"""
    calls = []

    class Spy(OSCArgument):
        def encode(self):
            calls.append(self.raw_text)
            return super().encode()

    arguments = [Spy("int", "1"), Spy("float", "oops"), Spy("bool", "nope")]
    with pytest.raises(ConversionError) as excinfo:
        encode_all(arguments)
    assert excinfo.value.field == "float"
    assert calls == ["1", "oops"]


def test_encode_all_keeps_order():
    arguments = [OSCArgument("string", "a"), OSCArgument("int", "2"), OSCArgument("bool", "true")]
    assert encode_all(arguments) == [
        (ArgumentKind.STRING, "a"),
        (ArgumentKind.INT, 2),
        (ArgumentKind.BOOL, True),
    ]


def test_argument_as_text():
    assert OSCArgument("float", "0.5").as_text() == "float:0.5"


def test_render_values():
    decoded_float = struct.unpack('>f', struct.pack('>f', 3.14))[0]
    assert render_value(42) == "42"
    assert render_value(decoded_float) == "3.14"
    assert render_value(True) == "true"
    assert render_value(False) == "false"
    assert render_value(b"\x01\xff") == "01ff"
    assert render_value(None) == "nil"
    assert render_values([42, decoded_float, "hi"]) == "42, 3.14, hi"
    assert render_values([]) == ""
