"""
The dashboard event loop.

Each pass of the loop waits briefly for a keystroke, then drains the
daemon's change notifications, refreshes the player status at the
configured rate and redraws when anything visible changed. A lost
connection never blocks the loop: reconnect attempts are scheduled with a
growing delay and the loop keeps reading keys in between, so quitting
always works.
"""
import time

from .client import Backoff
from .keys import Action, key_to_action
from .logging_config import DaemonConnectionError, DaemonError, get_logger
from .render import Renderer
from .state import StateStore
from .terminal import echo

logger = get_logger('app')

POLL_INTERVAL = 0.1


class Dashboard:
    def __init__(self, config, client, term=None, clock=time.monotonic):
        self.config = config
        self.client = client
        self.term = term
        self.clock = clock
        self.store = StateStore(config)
        self.renderer = Renderer()
        self.backoff = Backoff()
        self.reconnect_at = None
        self.next_refresh = 0.0
        self.running = True
        self.dirty = True

    # Connection

    def connect(self):
        """Connect and load everything; schedule a retry on failure."""
        try:
            self.client.reconnect()
            status, queue = self.client.resync()
        except DaemonConnectionError as e:
            self._connection_lost(e)
            return False
        self.backoff.reset()
        self.reconnect_at = None
        self.store.apply_resync(status, queue)
        self.store.clear_message()
        self.next_refresh = self.clock() + 1 / self.config.ups
        self.dirty = True
        logger.info(f'Synchronized {len(queue)} queue entries')
        return True

    def _connection_lost(self, error):
        self.client.discard()
        delay = self.backoff.next_delay()
        self.reconnect_at = self.clock() + delay
        logger.warning(f'{error}; retrying in {delay:g}s')
        self.store.notify(f'Disconnected, retrying in {delay:g}s', self.clock(), ttl=None)
        self.dirty = True

    # Daemon traffic

    def _talk(self, func, *args):
        """Run a client call, turning failures into messages or reconnects."""
        try:
            return func(*args)
        except DaemonError as e:
            self.store.notify(e.message or str(e), self.clock())
            self.dirty = True
        except DaemonConnectionError as e:
            self._connection_lost(e)
        return None

    def refresh_status(self):
        status = self._talk(self.client.get_status)
        if status is not None:
            self.store.apply_status(status)
            self.dirty = True

    def refresh_queue(self):
        queue = self._talk(self.client.get_queue)
        if queue is not None:
            self.store.apply_queue(queue)
            self.dirty = True

    def on_changes(self, changed):
        if 'playlist' in changed:
            self.refresh_queue()
        if changed and self.client.connected:
            self.refresh_status()

    def send(self, command):
        if not self.client.connected:
            # keep the reconnect countdown on screen
            message = self.store.message
            if message is None or message.expires is not None:
                self.store.notify('Not connected', self.clock())
            return
        logger.debug(f'Sending {command.name} {" ".join(command.args)}'.rstrip())
        try:
            self.client.execute(command.name, *command.args)
        except DaemonError as e:
            self.store.notify(e.message or str(e), self.clock())
            # undo the optimistic update
            self.refresh_status()
        except DaemonConnectionError as e:
            self._connection_lost(e)

    # Input

    def handle_key(self, inp):
        mapped = key_to_action(inp, self.store.searching)
        if mapped is None:
            return
        action, payload = mapped
        self.dirty = True
        if action is Action.QUIT:
            self.running = False
            return
        method = getattr(self.store, action.value)
        command = method(payload) if payload is not None else method()
        if command is not None:
            self.send(command)

    # Loop

    def tick(self):
        now = self.clock()
        if self.store.message is not None:
            self.store.expire_message(now)
            if self.store.message is None:
                self.dirty = True
        if not self.client.connected:
            if self.reconnect_at is not None and now >= self.reconnect_at:
                self.connect()
            return
        changed = self._talk(self.client.poll)
        if changed:
            self.on_changes(changed)
        if self.client.connected and now >= self.next_refresh:
            self.next_refresh = now + 1 / self.config.ups
            self.refresh_status()

    def draw(self):
        frame = self.renderer.render(self.config.layout, self.store, self.term.area)
        self.term.paint(frame)
        self.dirty = False

    def run(self):
        term = self.term
        self.connect()
        size = None
        try:
            with term.fullscreen(), term.cbreak(), term.hidden_cursor():
                while self.running:
                    if size != (term.width, term.height):
                        size = (term.width, term.height)
                        echo(term.clear)
                        self.dirty = True
                    if self.dirty:
                        self.draw()
                    inp = term.inkey(timeout=POLL_INTERVAL)
                    if inp:
                        self.handle_key(inp)
                    self.tick()
        finally:
            self.client.discard()
