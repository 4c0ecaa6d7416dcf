import time

import pytest

from oscchecker.osc.message_log import MessageLog
from oscchecker.osc.server import Listener


def wait_for(listener, count, timeout=2.0):
    """Poll the listener until `count` messages were applied or timeout"""
    applied = 0
    deadline = time.time() + timeout
    while applied < count and time.time() < deadline:
        applied += listener.poll()
        time.sleep(0.01)
    return applied


@pytest.fixture
def message_log():
    return MessageLog(max_entries=100)


@pytest.fixture
def listener(message_log):
    listener = Listener(message_log)
    yield listener
    listener.stop()
