from blessed.keyboard import Keystroke

from mpdash.app import Dashboard
from mpdash.config import Config
from mpdash.layout import Rect
from mpdash.logging_config import DaemonConnectionError, DaemonError
from mpdash.models import PlayerStatus

from conftest import make_queue, playing


class FakeClient:
    def __init__(self):
        self.connected = False
        self.sent = []
        self.changes = []
        self.queue = make_queue('A', 'B', 'C')
        self.status = playing(self.queue, 0)
        self.fail_connect = 0
        self.reject = None
        self.drop = False
        self.status_calls = 0

    def reconnect(self):
        if self.fail_connect:
            self.fail_connect -= 1
            raise DaemonConnectionError('refused')
        self.connected = True

    def resync(self):
        return self.status, list(self.queue)

    def discard(self):
        self.connected = False

    def execute(self, command, *args):
        if self.drop:
            self.connected = False
            raise DaemonConnectionError('lost')
        if self.reject:
            raise self.reject
        self.sent.append((command,) + args)
        return []

    def poll(self, timeout=0.0):
        return self.changes.pop(0) if self.changes else set()

    def get_status(self):
        self.status_calls += 1
        return self.status

    def get_queue(self):
        return list(self.queue)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class FakeTerminal:
    area = Rect(0, 0, 40, 6)

    def __init__(self):
        self.frames = []

    def paint(self, frame):
        self.frames.append(frame)


class TestDashboard:
    """Tests for the event loop handlers."""

    def setup_method(self):
        self.client = FakeClient()
        self.clock = FakeClock()
        self.term = FakeTerminal()
        self.app = Dashboard(Config(), self.client, self.term, clock=self.clock)

    def test_connect_resyncs(self):
        assert self.app.connect()
        assert len(self.app.store.queue) == 3
        assert self.app.store.current_pos == 0

    def test_key_sends_command(self):
        self.app.connect()
        self.app.handle_key(Keystroke('r'))
        assert self.client.sent == [('repeat', '1')]
        assert self.app.store.status.repeat

    def test_movement_sends_nothing(self):
        self.app.connect()
        self.app.handle_key(Keystroke('j'))
        assert self.client.sent == []
        assert self.app.store.selection.index == 1

    def test_play_selected(self):
        self.app.connect()
        self.app.handle_key(Keystroke('G'))
        self.app.handle_key(Keystroke('\n'))
        assert self.client.sent == [('play', '2')]

    def test_quit(self):
        self.app.handle_key(Keystroke('q'))
        assert not self.app.running

    def test_rejected_command_shows_message(self):
        self.app.connect()
        self.client.reject = DaemonError(50, 0, 'play', 'No such song')
        self.app.handle_key(Keystroke('\n'))
        assert self.app.store.message.text == 'No such song'
        assert self.client.connected
        self.clock.now += 3.5
        self.app.tick()
        assert self.app.store.message is None

    def test_search_typing(self):
        self.app.connect()
        for ch in '/b':
            self.app.handle_key(Keystroke(ch))
        assert self.app.store.search.query == 'b'
        assert self.app.store.view == (1,)
        self.app.handle_key(Keystroke('\x1b[?', code=1000, name='KEY_ESCAPE'))
        assert self.app.store.view == (0, 1, 2)

    def test_playlist_change_refreshes_queue(self):
        self.app.connect()
        self.client.queue = make_queue('A', 'B', 'C', 'D')
        self.client.changes = [{'playlist'}]
        self.app.tick()
        assert len(self.app.store.queue) == 4

    def test_player_change_refreshes_status(self):
        self.app.connect()
        self.client.status = PlayerStatus()
        self.client.changes = [{'player'}]
        self.app.tick()
        assert self.app.store.status.stopped

    def test_periodic_refresh(self):
        self.app.connect()
        self.app.tick()
        assert self.client.status_calls == 0
        self.clock.now += 1.0
        self.app.tick()
        assert self.client.status_calls == 1

    def test_reconnect_with_backoff(self):
        self.client.fail_connect = 2
        assert not self.app.connect()
        assert self.app.store.message.text.startswith('Disconnected')
        self.clock.now += 0.25
        self.app.tick()
        assert not self.client.connected
        self.clock.now += 0.25
        self.app.tick()  # second failure, next try after 1s
        assert not self.client.connected
        self.clock.now += 1.0
        self.app.tick()
        assert self.client.connected
        assert self.app.store.message is None
        assert len(self.app.store.queue) == 3

    def test_connection_lost_on_command(self):
        self.app.connect()
        self.client.drop = True
        self.app.handle_key(Keystroke('p'))
        assert not self.client.connected
        assert self.app.reconnect_at == self.clock.now + 0.5
        # keys keep working while disconnected
        self.app.handle_key(Keystroke('q'))
        assert not self.app.running

    def test_keys_while_disconnected_keep_retry_message(self):
        self.client.fail_connect = 1
        self.app.connect()
        self.app.handle_key(Keystroke('r'))
        assert self.app.store.message.text.startswith('Disconnected')
        assert self.app.store.message.expires is None
        assert self.client.sent == []

    def test_keys_before_connecting_say_not_connected(self):
        self.app.handle_key(Keystroke('p'))
        assert self.app.store.message.text == 'Not connected'
        assert self.app.store.message.expires is not None

    def test_draw(self):
        self.app.connect()
        self.app.draw()
        assert not self.app.dirty
        assert self.term.frames[-1].rows()[1].startswith('A')
