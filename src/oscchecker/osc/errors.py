# OSCChecker - Errors
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


class OSCCheckerError(Exception):
    """Base class for recoverable errors raised by the OSC core"""


class ValidationError(OSCCheckerError):
    """Empty or malformed user input (host, port, address, listener port)"""


class ConversionError(OSCCheckerError):
    """Argument text that cannot be converted to its declared type"""

    def __init__(self, field, input):
        self.field = field
        self.input = input
        super().__init__(f"{field} conversion error: {input!r}")


class TransportError(OSCCheckerError):
    """Bind, send or receive failure at the network layer"""

    def __init__(self, cause, context=""):
        self.cause = cause
        message = f"{context}: {cause}" if context else str(cause)
        super().__init__(message)


class ConfigError(Exception):
    """The configuration could not be obtained. Fatal at startup."""
