"""
State management for mpdash.

StateStore holds what the dashboard shows: player status, the queue, the
search state and the selection. It changes in two ways only: updates
reported by the daemon, and user actions. Actions that need the daemon
update local state right away and return the Command to send; the next
status refresh corrects anything the daemon did differently.
"""
import enum
from bisect import bisect_left
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from .logging_config import get_logger
from .models import PlaybackState, PlayerStatus, Song
from .search import filter_queue

logger = get_logger('state')

MESSAGE_TTL = 3.0


class Command(NamedTuple):
    name: str
    args: Tuple[str, ...] = ()


class SearchMode(enum.Enum):
    NORMAL = 'normal'
    SEARCHING = 'searching'


@dataclass
class SearchState:
    mode: SearchMode = SearchMode.NORMAL
    query: str = ''
    filtered_indices: Tuple[int, ...] = ()


@dataclass
class Selection:
    """Index into the filtered view; None only while the view is empty."""
    index: Optional[int] = None


@dataclass
class Message:
    text: str
    expires: Optional[float] = None


def _flag(value):
    return '1' if value else '0'


class StateStore:
    def __init__(self, config):
        self.config = config
        self.status = PlayerStatus()
        self.queue: List[Song] = []
        self.search = SearchState()
        self.selection = Selection()
        self.message: Optional[Message] = None
        self.queue_version = 0
        self._filter_key = None
        self._refilter()

    # Derived state

    @property
    def view(self) -> Tuple[int, ...]:
        return self.search.filtered_indices

    @property
    def searching(self):
        return self.search.mode is SearchMode.SEARCHING

    @property
    def filtered(self):
        return bool(self.search.query)

    @property
    def current_pos(self) -> Optional[int]:
        song = self.status.current_song
        return song.pos if song is not None else None

    def selected_queue_index(self) -> Optional[int]:
        if self.selection.index is None or not self.view:
            return None
        return self.view[self.selection.index]

    def _view_position(self, queue_index):
        view = self.view
        if queue_index is None:
            return None
        i = bisect_left(view, queue_index)
        if i < len(view) and view[i] == queue_index:
            return i
        return None

    def _refilter(self):
        """Recompute the filtered view when the query or the queue changed."""
        key = (self.search.query, self.queue_version)
        if key == self._filter_key:
            return
        previous = self.selected_queue_index()
        old_index = self.selection.index
        self.search.filtered_indices = tuple(
            filter_queue(self.queue, self.search.query, self.config.search_fields))
        self._filter_key = key
        logger.debug(f'Query {self.search.query!r} matches {len(self.search.filtered_indices)} of {len(self.queue)}')
        self._retarget(previous, old_index)

    def _retarget(self, previous, old_index):
        view = self.view
        if not view:
            self.selection.index = None
            return
        for candidate in (previous, self.current_pos):
            position = self._view_position(candidate)
            if position is not None:
                self.selection.index = position
                return
        self.selection.index = min(max(old_index or 0, 0), len(view) - 1)

    # Daemon updates

    def apply_status(self, status: PlayerStatus):
        self.status = status

    def apply_queue(self, queue: List[Song]):
        self.queue = list(queue)
        self.queue_version += 1
        self._refilter()

    def apply_resync(self, status: PlayerStatus, queue: List[Song]):
        self.apply_status(status)
        self.apply_queue(queue)

    # Messages

    def notify(self, text: str, now: float, ttl: Optional[float] = MESSAGE_TTL):
        self.message = Message(text, None if ttl is None else now + ttl)

    def expire_message(self, now: float):
        if self.message is not None and self.message.expires is not None and now >= self.message.expires:
            self.message = None

    def clear_message(self):
        self.message = None

    # Mode toggles

    def toggle_repeat(self) -> Command:
        self.status.repeat = not self.status.repeat
        return Command('repeat', (_flag(self.status.repeat),))

    def toggle_random(self) -> Command:
        self.status.random = not self.status.random
        return Command('random', (_flag(self.status.random),))

    def toggle_single(self) -> Command:
        self.status.single = not self.status.single
        self.status.oneshot = False
        return Command('single', (_flag(self.status.single),))

    def toggle_oneshot(self) -> Command:
        if self.status.oneshot:
            self.status.oneshot = False
            return Command('single', ('0',))
        self.status.oneshot = True
        self.status.single = False
        return Command('single', ('oneshot',))

    def toggle_consume(self) -> Command:
        self.status.consume = not self.status.consume
        return Command('consume', (_flag(self.status.consume),))

    # Transport

    def toggle_pause(self) -> Command:
        state = self.status.playback_state
        if state is PlaybackState.STOPPED:
            # the daemon picks the song; the status refresh brings it in
            return Command('play')
        if state is PlaybackState.PLAYING:
            self.status.playback_state = PlaybackState.PAUSED
            return Command('pause', ('1',))
        self.status.playback_state = PlaybackState.PLAYING
        return Command('pause', ('0',))

    def stop(self) -> Command:
        self.status.playback_state = PlaybackState.STOPPED
        self.status.current_song = None
        self.status.song_pos = None
        self.status.elapsed = 0.0
        return Command('stop')

    def _seek(self, delta) -> Optional[Command]:
        if self.status.stopped:
            return None
        elapsed = max(self.status.elapsed + delta, 0.0)
        if self.status.duration is not None:
            elapsed = min(elapsed, self.status.duration)
        self.status.elapsed = elapsed
        return Command('seekcur', (f'{delta:+g}',))

    def seek_forward(self) -> Optional[Command]:
        return self._seek(self.config.seek_secs)

    def seek_backward(self) -> Optional[Command]:
        return self._seek(-self.config.seek_secs)

    def _set_current(self, queue_index):
        song = self.queue[queue_index]
        self.status.current_song = song
        self.status.song_pos = queue_index
        self.status.elapsed = 0.0
        self.status.duration = song.duration

    def _step_track(self, step):
        pos = self.current_pos
        if pos is not None and 0 <= pos + step < len(self.queue):
            self._set_current(pos + step)

    def next_track(self) -> Command:
        self._step_track(1)
        return Command('next')

    def previous_track(self) -> Command:
        self._step_track(-1)
        return Command('previous')

    def play_selected(self) -> Optional[Command]:
        queue_index = self.selected_queue_index()
        if queue_index is None:
            return None
        if self.config.clear_query_on_play:
            self.exit_search()
        self._set_current(queue_index)
        self.status.playback_state = PlaybackState.PLAYING
        return Command('play', (str(queue_index),))

    # Selection

    def _move(self, step):
        length = len(self.view)
        if not length or self.selection.index is None:
            return
        index = self.selection.index + step
        if self.config.cycle:
            index %= length
        else:
            index = min(max(index, 0), length - 1)
        self.selection.index = index

    def move_down(self):
        self._move(1)

    def move_up(self):
        self._move(-1)

    def page_down(self):
        self._move(self.config.jump_lines)

    def page_up(self):
        self._move(-self.config.jump_lines)

    def goto_top(self):
        if self.view:
            self.selection.index = 0

    def goto_bottom(self):
        if self.view:
            self.selection.index = len(self.view) - 1

    def reselect(self):
        """Select the playing song, or the first row."""
        if not self.view:
            return
        position = self._view_position(self.current_pos)
        self.selection.index = position if position is not None else 0

    # Search

    def enter_search(self):
        self.search.mode = SearchMode.SEARCHING

    def confirm_search(self):
        self.search.mode = SearchMode.NORMAL

    def exit_search(self):
        self.search.mode = SearchMode.NORMAL
        self.search.query = ''
        self._refilter()

    def append_query(self, char: str):
        self.search.query += char
        self._refilter()

    def backspace_query(self):
        self.search.query = self.search.query[:-1]
        self._refilter()
