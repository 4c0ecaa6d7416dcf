# OSCChecker - Message Log
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
from collections import deque, namedtuple


DEFAULT_MAX_ENTRIES = 100
EMPTY_LOG_TEXT = "Message log will be displayed here"

ReceivedMessage = namedtuple('ReceivedMessage', ['timestamp', 'address', 'values'])


def matches(pattern, address):
    """Address filter used by the receiver log.

    - empty pattern shows everything
    - a trailing "*" makes it a prefix match ("/test*" matches "/test/foo")
    - anything else is a plain substring match
    """
    if pattern == "":
        return True
    if pattern.endswith("*"):
        return address.startswith(pattern[:-1])
    return pattern in address


def format_entry(message):
    return f"{message.timestamp} | {message.address} | {message.values}"


class MessageLog:
    """Bounded, newest-first record of received OSC messages"""

    def __init__(self, max_entries=DEFAULT_MAX_ENTRIES, on_change=None):
        if int(max_entries) < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = int(max_entries)
        self.on_change = on_change  # on_change(count), mirrors "Received: N"
        self._messages = deque(maxlen=self.max_entries)
        self._lock = threading.Lock()

    def add(self, address, values):
        """Prepend a message stamped with the current wall-clock time.

        The oldest entry falls off the end once max_entries is reached.
        """
        message = ReceivedMessage(time.strftime("%H:%M:%S"), address, values)
        with self._lock:
            self._messages.appendleft(message)
            count = len(self._messages)
        self._notify(count)
        return message

    def clear(self):
        with self._lock:
            self._messages.clear()
        self._notify(0)

    def filtered_view(self, pattern=""):
        """Messages whose address passes the filter, newest first"""
        with self._lock:
            snapshot = list(self._messages)
        return [msg for msg in snapshot if matches(pattern, msg.address)]

    def render(self, pattern=""):
        """Text block for the log view, one line per visible message"""
        lines = [format_entry(msg) for msg in self.filtered_view(pattern)]
        if not lines:
            return EMPTY_LOG_TEXT
        return "\n".join(lines)

    @property
    def entries(self):
        with self._lock:
            return list(self._messages)

    def __len__(self):
        with self._lock:
            return len(self._messages)

    def _notify(self, count):
        if self.on_change:
            self.on_change(count)
