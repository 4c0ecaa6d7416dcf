#!/usr/bin/env python3
"""Test the listener lifecycle and inbound packet handling"""

import socket
import threading
import time

import pytest
from pythonosc.udp_client import SimpleUDPClient

from oscchecker.osc.errors import TransportError, ValidationError
from oscchecker.osc.message_log import MessageLog
from oscchecker.osc.server import Listener, ListenerState

from conftest import wait_for


def test_starts_stopped(listener):
    assert listener.state is ListenerState.STOPPED
    assert not listener.is_receiving
    assert listener.port is None


def test_stop_while_stopped_is_noop(listener):
    assert listener.stop() is ListenerState.STOPPED
    assert listener.state is ListenerState.STOPPED


def test_start_and_stop(listener):
    assert listener.start(0) is ListenerState.RECEIVING
    assert listener.is_receiving
    assert listener.port > 0
    assert listener.stop() is ListenerState.STOPPED
    assert listener.port is None


def test_start_while_receiving_is_noop(listener):
    listener.start(0)
    port = listener.port
    server = listener.server
    # Even an invalid port is ignored: the state check comes first
    assert listener.start("not a port") is ListenerState.RECEIVING
    assert listener.server is server
    assert listener.port == port


@pytest.mark.parametrize("port", ["", "abc", "65536", "-1"])
def test_invalid_port(listener, port):
    with pytest.raises(ValidationError):
        listener.start(port)
    assert listener.state is ListenerState.STOPPED


def test_invalid_port_keeps_history(listener, message_log):
    message_log.add("/old", "1")
    with pytest.raises(ValidationError):
        listener.start("abc")
    assert len(message_log) == 1


def test_bind_failure(listener):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    blocker.bind(("127.0.0.1", 0))
    try:
        with pytest.raises(TransportError):
            listener.start(blocker.getsockname()[1])
        assert listener.state is ListenerState.STOPPED
    finally:
        blocker.close()


def test_start_clears_log(listener, message_log):
    message_log.add("/old", "1")
    listener.start(0)
    assert len(message_log) == 0


def test_receives_and_calls_back(listener, message_log):
    received = []
    listener.start(0, on_message=lambda address, values: received.append((address, values)))

    client = SimpleUDPClient("127.0.0.1", listener.port)
    client.send_message("/test/foo", [42, 3.14, "text"])
    client.send_message("/test/bar", [])

    assert wait_for(listener, 2) == 2
    assert received == [("/test/foo", "42, 3.14, text"), ("/test/bar", "")]
    assert [(m.address, m.values) for m in message_log.entries] == [
        ("/test/bar", ""),
        ("/test/foo", "42, 3.14, text"),
    ]


def test_nothing_applied_without_poll(listener, message_log):
    """The server thread never writes to the log itself"""
    listener.start(0)
    SimpleUDPClient("127.0.0.1", listener.port).send_message("/x", 1)

    deadline = time.time() + 2.0
    while listener.events.empty() and time.time() < deadline:
        time.sleep(0.01)
    assert len(message_log) == 0
    assert listener.poll() == 1
    assert len(message_log) == 1


def test_malformed_packet_is_dropped(listener, message_log, capsys):
    listener.start(0)
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.sendto(b"not an osc packet", ("127.0.0.1", listener.port))
    finally:
        sock.close()
    SimpleUDPClient("127.0.0.1", listener.port).send_message("/valid", 1)

    assert wait_for(listener, 1) == 1
    assert [m.address for m in message_log.entries] == ["/valid"]
    assert "Dropped malformed OSC packet" in capsys.readouterr().out


def test_restart_on_same_port(message_log):
    listener = Listener(message_log)
    try:
        listener.start(0)
        port = listener.port
        listener.stop()
        assert listener.start(port) is ListenerState.RECEIVING
        assert listener.port == port

        SimpleUDPClient("127.0.0.1", port).send_message("/again", "yes")
        assert wait_for(listener, 1) == 1
        assert message_log.entries[0].values == "yes"
    finally:
        listener.stop()


def test_bounded_by_log_size():
    listener = Listener(MessageLog(3))
    try:
        listener.start(0)
        client = SimpleUDPClient("127.0.0.1", listener.port)
        for i in range(5):
            client.send_message(f"/n/{i}", i)
        assert wait_for(listener, 5) == 5
        assert [m.address for m in listener.message_log.entries] == ["/n/4", "/n/3", "/n/2"]
    finally:
        listener.stop()


def test_unparseable_osc_packet_is_dropped(listener, message_log, capsys):
    """Starts like a message but the int argument is missing"""
    listener.start(0)
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.sendto(b"/bad\x00\x00\x00\x00,i\x00\x00", ("127.0.0.1", listener.port))
    finally:
        sock.close()
    SimpleUDPClient("127.0.0.1", listener.port).send_message("/valid", 1)

    assert wait_for(listener, 1) == 1
    assert [m.address for m in message_log.entries] == ["/valid"]
    assert "Dropped malformed OSC packet" in capsys.readouterr().out


def test_restart_discards_packets_from_previous_session(listener, message_log):
    """Packets queued while the old server shuts down stay out of the new log"""
    listener.start(0)
    listener.stop()
    listener._shutdown_thread.join()

    def late_packet():
        time.sleep(0.1)
        listener.handle_message("/stale", 1)

    listener._shutdown_thread = threading.Thread(target=late_packet, daemon=True)
    listener._shutdown_thread.start()

    listener.start(0)
    assert listener.poll() == 0
    assert len(message_log) == 0
