"""
Player and queue models, parsed from daemon responses.
"""
import enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

Record = Dict[str, Union[str, List[str]]]


def to_timestamp(seconds):
    seconds = int(round(seconds))
    if seconds // 3600 != 0:
        return f'{seconds//3600}:{seconds//60%60:02}:{seconds%60:02}'
    return f'{seconds//60}:{seconds%60:02}'


class PlaybackState(enum.Enum):
    PLAYING = 'play'
    PAUSED = 'pause'
    STOPPED = 'stop'


@dataclass
class Song:
    file: str
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = None
    pos: Optional[int] = None
    id: Optional[int] = None


@dataclass
class PlayerStatus:
    repeat: bool = False
    random: bool = False
    single: bool = False
    oneshot: bool = False
    consume: bool = False
    playback_state: PlaybackState = PlaybackState.STOPPED
    elapsed: float = 0.0
    duration: Optional[float] = None
    song_pos: Optional[int] = None
    queue_length: int = 0
    current_song: Optional[Song] = None

    @property
    def stopped(self):
        return self.playback_state is PlaybackState.STOPPED


def _number(value, cast=float):
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def _tag(value):
    # repeated tags arrive as a list
    if isinstance(value, list):
        return ', '.join(value)
    return value


def parse_status(status: Record) -> PlayerStatus:
    """Build a PlayerStatus from a ``status`` result.

    Known keys are converted to typed fields, anything else is ignored so
    newer daemons keep working.
    """
    parsed = PlayerStatus()
    for key, value in status.items():
        if key == 'repeat':
            parsed.repeat = value == '1'
        elif key == 'random':
            parsed.random = value == '1'
        elif key == 'single':
            parsed.single = value == '1'
            parsed.oneshot = value == 'oneshot'
        elif key == 'consume':
            parsed.consume = value != '0'
        elif key == 'state':
            try:
                parsed.playback_state = PlaybackState(value)
            except ValueError:
                parsed.playback_state = PlaybackState.STOPPED
        elif key == 'elapsed':
            parsed.elapsed = _number(value) or 0.0
        elif key == 'song':
            parsed.song_pos = _number(value, int)
        elif key == 'playlistlength':
            parsed.queue_length = _number(value, int) or 0
    parsed.duration = _number(status.get('duration'))
    if parsed.duration is None and 'time' in status:
        # legacy "elapsed:total"
        _, _, total = status['time'].partition(':')
        parsed.duration = _number(total)
    return parsed


def parse_song(record: Record) -> Optional[Song]:
    """Convert one song record; records without a ``file`` are skipped."""
    if 'file' not in record:
        return None
    duration = _number(record.get('duration'))
    if duration is None:
        duration = _number(record.get('time'))
    return Song(
        _tag(record['file']),
        title=_tag(record.get('title')),
        artist=_tag(record.get('artist')),
        album=_tag(record.get('album')),
        duration=duration,
        pos=_number(record.get('pos'), int),
        id=_number(record.get('id'), int),
    )


def parse_songs(records: List[Record]) -> List[Song]:
    songs = []
    for record in records:
        song = parse_song(record)
        if song is not None:
            songs.append(song)
    return songs


def merge_current_song(status: PlayerStatus, songs: List[Song]) -> PlayerStatus:
    """Attach the ``currentsong`` result, keeping current_song None iff stopped."""
    song = songs[0] if songs else None
    if status.stopped or song is None:
        status.playback_state = PlaybackState.STOPPED
        status.current_song = None
        status.elapsed = 0.0
        return status
    if song.pos is None:
        song.pos = status.song_pos
    if song.duration is None:
        song.duration = status.duration
    status.current_song = song
    return status
