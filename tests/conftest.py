import collections
import logging
import shutil
import socket
import sys
import tempfile
import threading
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mpdash.client import Client
from mpdash.config import Config
from mpdash.models import PlaybackState, PlayerStatus, Song
from mpdash.state import StateStore


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.005)
    return True


class FakeDaemon:
    """A scripted daemon on a unix socket: canned replies, recorded requests.

    Requests without a scripted reply get a bare ``OK``. ``noidle`` is only
    answered while an idle request is outstanding, as the real daemon does.
    """

    def __init__(self, path, greeting='OK MPD 0.23.5'):
        self.path = str(path)
        self.greeting = greeting
        self.replies = collections.defaultdict(collections.deque)
        self.requests = []
        self.idling = False
        self.conn = None
        self.lock = threading.Lock()
        self.server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.server.bind(self.path)
        self.server.listen(1)
        self.server.settimeout(2.0)
        self.thread = threading.Thread(target=self.serve, daemon=True)
        self.thread.start()

    def script(self, command, *lines):
        """Queue the reply to the next ``command``; OK is added unless it is an ACK."""
        if not lines or not lines[-1].startswith('ACK '):
            lines += ('OK',)
        self.replies[command].append(lines)

    def _send(self, *lines):
        self.conn.sendall(''.join(f'{line}\n' for line in lines).encode('utf-8'))

    def serve(self):
        try:
            self.conn, _ = self.server.accept()
            self._send(self.greeting)
            with self.conn.makefile('rb') as rfile:
                for raw in rfile:
                    self._handle(raw.decode('utf-8').rstrip('\n'))
        except (OSError, ValueError):
            # closed underneath us by hang_up or close
            pass

    def _handle(self, line):
        with self.lock:
            self.requests.append(line)
            command = line.split(' ', 1)[0]
            if command == 'idle':
                self.idling = True
            elif command == 'noidle':
                if self.idling:
                    self.idling = False
                    self._send('OK')
            elif self.replies[command]:
                self._send(*self.replies[command].popleft())
            else:
                self._send('OK')

    def notify(self, *subsystems):
        """Answer the outstanding idle request."""
        assert wait_until(lambda: self.idling)
        with self.lock:
            self.idling = False
            self._send(*[f'changed: {name}' for name in subsystems], 'OK')

    def written(self):
        """Every request so far, once the client is back in idle; quotes dropped."""
        wait_until(lambda: self.idling)
        with self.lock:
            return [line.replace('"', '') for line in self.requests]

    def hang_up(self):
        assert wait_until(lambda: self.conn is not None)
        self.conn.shutdown(socket.SHUT_RDWR)
        self.conn.close()

    def close(self):
        for sock in (self.conn, self.server):
            if sock is not None:
                try:
                    sock.close()
                except OSError:
                    pass


@pytest.fixture
def socket_dir():
    # unix socket paths are length limited, so stay out of pytest's tmp_path
    path = tempfile.mkdtemp(prefix='mpdash')
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def daemon(socket_dir):
    fake = FakeDaemon(socket_dir / 'mpd.sock')
    yield fake
    fake.close()


@pytest.fixture
def client(daemon):
    """A client that has been greeted and is ready to issue commands."""
    c = Client(daemon.path)
    c.reconnect()
    yield c
    c.discard()


def make_queue(*titles):
    return [Song(f'{t.lower()}.flac', title=t, artist=f'{t} Artist', album='Sides',
                 duration=180.0 + i, pos=i, id=i + 1)
            for i, t in enumerate(titles)]


def playing(queue, pos, state=PlaybackState.PLAYING):
    return PlayerStatus(playback_state=state, elapsed=12.0, duration=queue[pos].duration,
                        song_pos=pos, queue_length=len(queue), current_song=queue[pos])


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def store(config):
    s = StateStore(config)
    s.apply_queue(make_queue('A', 'B', 'C'))
    return s


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger('mpdash')
    logger.handlers.clear()
    logger.propagate = True
