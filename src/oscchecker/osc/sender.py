# OSCChecker - OSC Sender
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

import threading
import time
from collections import deque

from pythonosc import udp_client
from pythonosc.osc_message_builder import OscMessageBuilder

from .arguments import ArgumentKind, OSCArgument, encode_all
from .errors import TransportError, ValidationError


HISTORY_CAPACITY = 50
EMPTY_HISTORY_TEXT = "Send history will be displayed here"

_TYPE_TAGS = {
    ArgumentKind.INT: OscMessageBuilder.ARG_TYPE_INT,
    ArgumentKind.FLOAT: OscMessageBuilder.ARG_TYPE_FLOAT,
    ArgumentKind.STRING: OscMessageBuilder.ARG_TYPE_STRING,
}


def parse_port(text, minimum=1):
    """Parse a port number typed by the operator"""
    text = str(text)
    try:
        port = int(text)
    except ValueError:
        raise ValidationError(f"Invalid port number: {text!r}") from None
    if port < minimum or port > 65535:
        raise ValidationError(f"Port out of range: {port}")
    return port


class SendTarget:
    """Destination and argument list for one sender section"""

    def __init__(self, name, host, port, address, arguments=None):
        self.name = name
        self.host = host
        self.port = port  # int from config, str once edited in the UI
        self.address = address
        self.arguments = list(arguments or [])

    def add_argument(self, kind=ArgumentKind.INT, raw_text="0"):
        argument = OSCArgument(kind, raw_text)
        self.arguments.append(argument)
        return argument

    def remove_argument(self, index):
        if 0 <= index < len(self.arguments):
            del self.arguments[index]

    def __repr__(self):
        return (f"SendTarget({self.name!r}, {self.host!r}, {self.port!r}, "
                f"{self.address!r}, {self.arguments!r})")


class SendResult:
    """Summary of a successful send, used for the history list"""

    def __init__(self, target, host, port, address, arguments_as_text, timestamp=None):
        self.target = target
        self.host = host
        self.port = port
        self.address = address
        self.arguments_as_text = arguments_as_text
        self.timestamp = timestamp or time.strftime("%H:%M:%S")

    def summary(self):
        args = ", ".join(self.arguments_as_text)
        return f"{self.host}:{self.port} {self.address} [{args}]"

    def format_history_entry(self):
        return f"{self.timestamp} | {self.target.name} → {self.summary()}"


class Sender:
    """Builds and transmits one OSC message per send() call.

    Clients are created lazily per (host, port) and reused. There is
    no retry and no timeout: a slow send blocks the caller.
    """

    def __init__(self, client_factory=None):
        self.client_factory = client_factory or udp_client.UDPClient
        self._clients = {}
        self._lock = threading.Lock()

    def send(self, target):
        host = target.host
        port_text = "" if target.port is None else str(target.port)
        address = target.address

        if not host or not port_text or not address:
            raise ValidationError("Host, port and address are required")
        if not address.startswith("/"):
            raise ValidationError(f"OSC address must start with '/': {address!r}")
        port = parse_port(port_text)

        # Encode everything before touching the network
        values = encode_all(target.arguments)

        builder = OscMessageBuilder(address=address)
        for kind, value in values:
            if kind is ArgumentKind.BOOL:
                tag = OscMessageBuilder.ARG_TYPE_TRUE if value else OscMessageBuilder.ARG_TYPE_FALSE
                builder.add_arg(value, tag)
            else:
                builder.add_arg(value, _TYPE_TAGS[kind])
        message = builder.build()

        with self._lock:
            client = self._get_client(host, port)
            try:
                client.send(message)
            except OSError as e:
                self._clients.pop((host, port), None)
                raise TransportError(e, f"send to {host}:{port}") from e

        result = SendResult(target, host, port, address,
                            [arg.as_text() for arg in target.arguments])
        print(f"OSC sent [{target.name}]: {result.summary()}")
        return result

    def _get_client(self, host, port):
        client = self._clients.get((host, port))
        if client is None:
            try:
                client = self.client_factory(host, port)
            except OSError as e:
                raise TransportError(e, f"open client for {host}:{port}") from e
            self._clients[(host, port)] = client
        return client

    def close(self):
        """Drop cached clients"""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            sock = getattr(client, '_sock', None)
            if sock is not None:
                sock.close()


class SendHistory:
    """Newest-first list of formatted send summaries, capped at capacity"""

    def __init__(self, capacity=HISTORY_CAPACITY):
        self.capacity = capacity
        self._entries = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add(self, result):
        line = result.format_history_entry() if isinstance(result, SendResult) else str(result)
        with self._lock:
            self._entries.appendleft(line)
        return line

    def clear(self):
        with self._lock:
            self._entries.clear()

    @property
    def entries(self):
        with self._lock:
            return list(self._entries)

    def render(self):
        entries = self.entries
        return "\n".join(entries) if entries else EMPTY_HISTORY_TEXT

    def __len__(self):
        with self._lock:
            return len(self._entries)
