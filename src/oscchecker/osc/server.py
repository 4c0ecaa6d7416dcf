# OSCChecker - OSC Server
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

import queue
import threading
from enum import Enum

from pythonosc import dispatcher
from pythonosc import osc_packet
from pythonosc import osc_server

from .arguments import render_values
from .errors import TransportError
from .sender import parse_port


DEFAULT_BIND_ADDRESS = "127.0.0.1"


class ListenerState(Enum):
    STOPPED = "Stopped"
    RECEIVING = "Receiving..."


class PacketDispatcher(dispatcher.Dispatcher):
    """Dispatcher that reports datagrams python-osc cannot parse"""

    def call_handlers_for_packet(self, data, client_address):
        try:
            osc_packet.OscPacket(data)
        except osc_packet.ParseError as e:
            print(f"Dropped malformed OSC packet from {client_address}: {e}")
            return []
        return super().call_handlers_for_packet(data, client_address)


class ListenerServer(osc_server.BlockingOSCUDPServer):
    """UDP server that reports datagrams rejected before dispatch"""

    def verify_request(self, request, client_address):
        # Anything not starting with "/" or "#bundle" never reaches the dispatcher
        if super().verify_request(request, client_address):
            return True
        print(f"Dropped malformed OSC packet from {client_address}: {len(request[0])} bytes")
        return False


class Listener:
    """Inbound OSC listener feeding a MessageLog.

    The server thread only renders packets and queues them; poll(), run
    by a single consumer, applies them to the log and fires on_message.
    stop() is best-effort: packets queued before it may still show up on
    the next poll().
    """

    def __init__(self, message_log, address=DEFAULT_BIND_ADDRESS):
        self.message_log = message_log
        self.address = address
        self.server = None
        self.thread = None
        self.on_message = None
        self.state = ListenerState.STOPPED
        self.events = queue.Queue()
        self._shutdown_thread = None
        self._lock = threading.Lock()

    @property
    def is_receiving(self):
        return self.state is ListenerState.RECEIVING

    @property
    def port(self):
        """Port actually bound, or None while stopped"""
        server = self.server
        if server is None:
            return None
        return server.server_address[1]

    def start(self, port, on_message=None):
        """Start receiving on address:port.

        Returns the resulting state. Starting twice is a no-op.
        """
        with self._lock:
            if self.state is ListenerState.RECEIVING:
                return self.state

            port = parse_port(port, minimum=0)

            # The previous server may still queue packets until it is down
            if self._shutdown_thread is not None:
                self._shutdown_thread.join()
                self._shutdown_thread = None

            # A new session discards the previous history
            self.message_log.clear()
            self._drain()

            disp = PacketDispatcher()
            disp.set_default_handler(self.handle_message)

            try:
                self.server = ListenerServer((self.address, port), disp)
            except OSError as e:
                self.server = None
                raise TransportError(e, f"bind {self.address}:{port}") from e

            self.on_message = on_message
            self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
            self.thread.start()
            self.state = ListenerState.RECEIVING
            print(f"OSC Server started on {self.address}:{self.port}")
            return self.state

    def handle_message(self, address, *args):
        # Runs on the server thread
        self.events.put((address, render_values(args)))

    def poll(self):
        """Apply queued messages to the log. Returns how many were applied."""
        applied = 0
        while True:
            try:
                address, values = self.events.get_nowait()
            except queue.Empty:
                return applied
            self.message_log.add(address, values)
            print(f"OSC received: {address} [{values}]")
            if self.on_message:
                self.on_message(address, values)
            applied += 1

    def stop(self):
        """Release the socket without waiting for the server thread"""
        with self._lock:
            if self.state is ListenerState.STOPPED:
                return self.state

            server = self.server
            self.server = None
            self.thread = None
            self.state = ListenerState.STOPPED
            self._shutdown_thread = threading.Thread(
                target=self._shutdown_server, args=(server,), daemon=True)
            self._shutdown_thread.start()
            print("OSC Server stopped")
            return self.state

    def _shutdown_server(self, server):
        server.shutdown()
        server.server_close()

    def _drain(self):
        while True:
            try:
                self.events.get_nowait()
            except queue.Empty:
                return
