# OSCChecker - Argument Codec
# Copyright (C) 2025 maigre - Hemisphere Project
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import math
import re
import struct
from enum import Enum

from .errors import ConversionError, ValidationError


INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1

_INT_PATTERN = re.compile(r'[+-]?[0-9]+')

# Same spellings as the usual strconv-style boolean parsers
_TRUE_LITERALS = ('1', 't', 'T', 'TRUE', 'true', 'True')
_FALSE_LITERALS = ('0', 'f', 'F', 'FALSE', 'false', 'False')


class ArgumentKind(Enum):
    INT = 'int'
    FLOAT = 'float'
    STRING = 'string'
    BOOL = 'bool'

    @classmethod
    def parse(cls, text):
        """Map a config/UI spelling ("int", "float", ...) to a kind"""
        try:
            return cls(str(text).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown argument type: {text!r}") from None

    @classmethod
    def names(cls):
        return [kind.value for kind in cls]


class OSCArgument:
    """A typed argument as entered by the operator.

    Only the raw text is stored; conversion happens at send time.
    """

    def __init__(self, kind, raw_text="", description=""):
        if not isinstance(kind, ArgumentKind):
            kind = ArgumentKind.parse(kind)
        self.kind = kind
        self.raw_text = raw_text
        self.description = description

    def encode(self):
        return encode(self.kind, self.raw_text)

    def as_text(self):
        """Summary used in the send history, e.g. "int:42" """
        return f"{self.kind.value}:{self.raw_text}"

    def __repr__(self):
        return f"OSCArgument({self.kind.value!r}, {self.raw_text!r})"

    def __eq__(self, other):
        if not isinstance(other, OSCArgument):
            return NotImplemented
        return (self.kind, self.raw_text, self.description) == \
            (other.kind, other.raw_text, other.description)


def _encode_int(raw_text):
    if not _INT_PATTERN.fullmatch(raw_text):
        raise ConversionError("int", raw_text)
    value = int(raw_text)
    if value < INT32_MIN or value > INT32_MAX:
        raise ConversionError("int", raw_text)
    return value


def _encode_float(raw_text):
    if not raw_text.isascii() or raw_text != raw_text.strip() or '_' in raw_text:
        raise ConversionError("float", raw_text)
    try:
        value = float(raw_text)
    except ValueError:
        raise ConversionError("float", raw_text) from None
    if math.isinf(value) or math.isnan(value):
        return value
    try:
        # Round to the nearest float32, failing on overflow
        return struct.unpack('>f', struct.pack('>f', value))[0]
    except OverflowError:
        raise ConversionError("float", raw_text) from None


def _encode_bool(raw_text):
    if raw_text in _TRUE_LITERALS:
        return True
    if raw_text in _FALSE_LITERALS:
        return False
    raise ConversionError("bool", raw_text)


_ENCODERS = {
    ArgumentKind.INT: _encode_int,
    ArgumentKind.FLOAT: _encode_float,
    ArgumentKind.STRING: lambda raw_text: raw_text,
    ArgumentKind.BOOL: _encode_bool,
}


def encode(kind, raw_text):
    """Convert entered text to a typed OSC value.

    Args:
        kind: ArgumentKind (or its string spelling)
        raw_text: Text as typed by the operator

    Returns:
        int, float, str or bool matching the kind

    Raises:
        ConversionError if the text is not valid for the kind
    """
    if not isinstance(kind, ArgumentKind):
        kind = ArgumentKind.parse(kind)
    if raw_text is None:
        raw_text = ""
    return _ENCODERS[kind](str(raw_text))


def encode_all(arguments):
    """Encode arguments in declaration order; the first failure aborts.

    Returns a list of (kind, value) tuples.
    """
    return [(arg.kind, arg.encode()) for arg in arguments]


def render_value(value):
    """Natural text for a decoded OSC value"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        # Decoded float32 values carry float64 noise (3.14 -> 3.140000104904175)
        return f"{value:.7g}"
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if value is None:
        return "nil"
    return str(value)


def render_values(values):
    return ", ".join(render_value(value) for value in values)
