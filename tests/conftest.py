import io
import re

import pytest

from pulse_bar import TerminalSession


class RecordingStream(io.StringIO):
    """StringIO that remembers every individual write"""

    def __init__(self):
        super().__init__()
        self.writes = []
        self.flushes = 0

    def write(self, data):
        self.writes.append(data)
        return super().write(data)

    def flush(self):
        self.flushes += 1
        super().flush()


class ManualClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class VirtualTerminal:
    """Applies the subset of VT100 used by pulse_bar to a grid of rows"""

    _token = re.compile(r'\x1b\[([0-9;]*)([A-Za-z])|(.)', re.DOTALL)

    def __init__(self):
        self.rows = [[]]
        self.row = 0
        self.col = 0

    def feed(self, data):
        for match in self._token.finditer(data):
            params, command, char = match.groups()
            if command is not None:
                self._control(params, command)
            elif char == '\r':
                self.col = 0
            elif char == '\n':
                self.row += 1
                self.col = 0
                while len(self.rows) <= self.row:
                    self.rows.append([])
            else:
                line = self.rows[self.row]
                while len(line) <= self.col:
                    line.append(' ')
                line[self.col] = char
                self.col += 1

    def _control(self, params, command):
        count = int(params) if params and command in 'AB' else 1
        if command == 'A':
            self.row = max(0, self.row - count)
        elif command == 'B':
            self.row = min(len(self.rows) - 1, self.row + count)
        elif command == 'K' and params == '2':
            self.rows[self.row] = []

    def lines(self):
        return [''.join(line).rstrip() for line in self.rows]


@pytest.fixture
def stream():
    return RecordingStream()


@pytest.fixture
def session(stream):
    return TerminalSession(stream)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def terminal():
    return VirtualTerminal()
