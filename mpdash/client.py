"""
Daemon connection: one persistent python-mpd2 client, one request in flight.

Between user commands the connection sits in ``idle`` so the daemon can
tell us which subsystems changed. Issuing a command means cancelling the
idle request first (``noidle``), keeping whatever it returned, running the
command and going back to ``idle``.
"""
import enum
import functools
import os
import re
import select
import shlex
from contextlib import contextmanager
from typing import List, Set, Tuple

import mpd
from mpd import CommandError, MPDClient

from .logging_config import DaemonConnectionError, DaemonError, get_logger
from .models import PlayerStatus, Song, merge_current_song, parse_songs, parse_status

logger = get_logger('client')

SUBSYSTEMS = ('options', 'player', 'playlist')
DEFAULT_PORT = 6600
ACK = re.compile(r'^\[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)$')

# daemon error codes
ACK_ERROR_ARG = 2
ACK_ERROR_UNKNOWN = 5


class ConnectionState(enum.Enum):
    DISCONNECTED = 'disconnected'
    IDLE = 'idle'
    ISSUING = 'issuing'
    AWAITING_RESULT = 'awaiting_result'


def parse_address(address):
    """Split ``host:port`` (or a unix socket path) into a connect target."""
    if address.startswith(('/', '~', '@')):
        return address, None
    if address.startswith('['):
        host, _, rest = address[1:].partition(']')
        port = rest.lstrip(':')
    elif address.count(':') == 1:
        host, _, port = address.partition(':')
    else:
        host, port = address, ''
    try:
        return host or 'localhost', int(port) if port else DEFAULT_PORT
    except ValueError:
        raise DaemonConnectionError(f'Invalid port in address {address!r}')


def daemon_error(error):
    """Turn a python-mpd2 CommandError into a DaemonError."""
    text = str(error)
    match = ACK.match(text)
    if match is None:
        return DaemonError(0, 0, '', text)
    code, index, command, message = match.groups()
    return DaemonError(int(code), int(index), command, message)


def response_lines(result):
    """Lay a command result out as ``key: value`` lines."""
    if result is None:
        return
    records = result if isinstance(result, list) else [result]
    for record in records:
        if not isinstance(record, dict):
            yield str(record)
            continue
        for key, value in record.items():
            for item in value if isinstance(value, list) else [value]:
                yield f'{key}: {item}'


class Backoff:
    """Capped doubling delay between reconnect attempts."""

    def __init__(self, initial=0.5, maximum=8.0):
        self.initial = initial
        self.maximum = maximum
        self.attempts = 0

    def next_delay(self):
        delay = min(self.initial * (2 ** self.attempts), self.maximum)
        self.attempts += 1
        return delay

    def reset(self):
        self.attempts = 0


class Client(MPDClient):
    def __init__(self, address: str, timeout: float = 10.0):
        super().__init__()
        self.address = address
        self.timeout = timeout
        self.connection_state = ConnectionState.DISCONNECTED
        self._changed: Set[str] = set()

    def handle_disconnect(func):
        """Drop the connection on any transport failure and report it uniformly."""
        @functools.wraps(func)
        def disconnect_wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except DaemonConnectionError:
                self.discard()
                raise
            except (mpd.base.ConnectionError, mpd.base.ProtocolError, OSError) as e:
                self.discard()
                raise DaemonConnectionError(f'Connection to {self.address} lost: {e}') from e
        return disconnect_wrapper

    @property
    def connected(self):
        return self.connection_state is not ConnectionState.DISCONNECTED

    @handle_disconnect
    def reconnect(self):
        if self.connected:
            self.discard()
        host, port = parse_address(self.address)
        if host.startswith('~'):
            host = os.path.expanduser(host)
        self.connect(host, port)
        self.connection_state = ConnectionState.ISSUING
        logger.info(f'Connected to {self.address} (protocol {self.mpd_version})')

    def discard(self):
        """Forget the connection; pending notifications are lost with it."""
        try:
            self.disconnect()
        except (mpd.base.ConnectionError, OSError) as e:
            logger.debug(f'Error while disconnecting: {e}')
        self._changed.clear()
        self.connection_state = ConnectionState.DISCONNECTED

    def _subscribe(self):
        self.send_idle(*SUBSYSTEMS)
        self.connection_state = ConnectionState.IDLE

    def _readable(self, timeout):
        readable, _, _ = select.select([self.fileno()], [], [], timeout)
        return bool(readable)

    @contextmanager
    def issuing(self):
        """Hold the connection out of idle for a batch of commands."""
        if self.connection_state is ConnectionState.DISCONNECTED:
            raise DaemonConnectionError(f'Not connected to {self.address}')
        if self.connection_state is ConnectionState.AWAITING_RESULT:
            raise RuntimeError('A command is already in flight')
        if self.connection_state is ConnectionState.IDLE:
            self._changed.update(self.noidle())
            self.connection_state = ConnectionState.ISSUING
        try:
            yield
        finally:
            if self.connection_state is ConnectionState.ISSUING:
                self._subscribe()

    def _method(self, command):
        # every daemon command has a send_ twin; connection helpers do not
        if not hasattr(self, 'send_' + command):
            raise DaemonError(ACK_ERROR_UNKNOWN, 0, command, f'unknown command "{command}"')
        return getattr(self, command)

    def _call(self, command, *args):
        method = self._method(command)
        logger.debug(f'> {" ".join((command,) + args)}')
        self.connection_state = ConnectionState.AWAITING_RESULT
        try:
            result = method(*args)
        except CommandError as e:
            self.connection_state = ConnectionState.ISSUING
            raise daemon_error(e) from e
        # a transport failure leaves AWAITING_RESULT so nothing re-subscribes
        self.connection_state = ConnectionState.ISSUING
        return result

    @handle_disconnect
    def execute(self, command: str, *args):
        """Run one command; raises DaemonError when the daemon rejects it."""
        with self.issuing():
            try:
                return self._call(command, *args)
            except DaemonError as e:
                logger.warning(f'Command {command!r} rejected: {e}')
                raise

    @handle_disconnect
    def poll(self, timeout: float = 0.0) -> Set[str]:
        """Return subsystems changed since the last poll, waiting up to timeout."""
        if self.connection_state is ConnectionState.DISCONNECTED:
            raise DaemonConnectionError(f'Not connected to {self.address}')
        if self.connection_state is ConnectionState.IDLE and self._readable(timeout):
            self._changed.update(self.fetch_idle())
            self.connection_state = ConnectionState.ISSUING
        if self.connection_state is ConnectionState.ISSUING:
            self._subscribe()
        changed = set(self._changed)
        self._changed.clear()
        if changed:
            logger.debug(f'Changed subsystems: {sorted(changed)}')
        return changed

    @handle_disconnect
    def get_status(self) -> PlayerStatus:
        with self.issuing():
            status = parse_status(self._call('status'))
            songs = parse_songs([self._call('currentsong')])
        return merge_current_song(status, songs)

    @handle_disconnect
    def get_queue(self) -> List[Song]:
        with self.issuing():
            songs = parse_songs(self._call('playlistinfo'))
        for pos, song in enumerate(songs):
            if song.pos is None:
                song.pos = pos
        return songs

    @handle_disconnect
    def resync(self) -> Tuple[PlayerStatus, List[Song]]:
        """Fetch everything from scratch, as after a reconnect."""
        with self.issuing():
            status = parse_status(self._call('status'))
            songs = parse_songs([self._call('currentsong')])
            queue = parse_songs(self._call('playlistinfo'))
        for pos, song in enumerate(queue):
            if song.pos is None:
                song.pos = pos
        self._changed.clear()
        return merge_current_song(status, songs), queue

    @handle_disconnect
    def run_line(self, line: str) -> List[str]:
        """Run one command line and return its response as protocol lines.

        Successful responses end with ``OK``; a rejected command yields its
        single ``ACK`` line.
        """
        try:
            try:
                words = shlex.split(line)
            except ValueError as e:
                raise DaemonError(ACK_ERROR_ARG, 0, '', str(e))
            if not words:
                raise DaemonError(ACK_ERROR_UNKNOWN, 0, '', 'No command given')
            with self.issuing():
                result = self._call(words[0], *words[1:])
        except DaemonError as e:
            return [f'ACK {e}']
        return list(response_lines(result)) + ['OK']
