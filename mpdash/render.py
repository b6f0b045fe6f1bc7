"""
Evaluates a layout tree against the current state into positioned spans.
"""
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

from wcwidth import wcwidth

from .layout import Rect, split
from .models import PlaybackState, Song, to_timestamp
from .schema import (
    Alignment, And, Columns, Field, If, Not, Or, Parts, Predicate, Queue, Rows,
    Styled, Text, Textbox, TextStyle, Xor, patch_style,
)

DEFAULT_STYLE = TextStyle()

Piece = Tuple[str, TextStyle]


class Span(NamedTuple):
    x: int
    y: int
    text: str
    style: TextStyle


@dataclass
class Frame:
    area: Rect
    spans: List[Span]

    def rows(self):
        """Text of every row, for debugging and tests."""
        lines = [[' '] * self.area.width for _ in range(self.area.height)]
        for span in self.spans:
            x = span.x - self.area.x
            row = lines[span.y - self.area.y]
            for ch in span.text:
                if 0 <= x < len(row):
                    row[x] = ch
                x += max(char_width(ch), 1)
        return [''.join(line) for line in lines]


@dataclass
class RowContext:
    song: Song
    is_current: bool
    is_selected: bool


def char_width(ch):
    # control characters are drawn as a blank
    w = wcwidth(ch)
    return 1 if w < 0 else w


def text_width(text):
    return sum(char_width(ch) for ch in text)


# Conditions

def _song_has(song, attr):
    return song is not None and bool(getattr(song, attr))


def evaluate(cond, store, row: Optional[RowContext] = None) -> bool:
    """Evaluate a condition. Both sides of a binary operator are always evaluated."""
    if isinstance(cond, Predicate):
        status = store.status
        song = status.current_song
        if cond is Predicate.REPEAT:
            return status.repeat
        if cond is Predicate.RANDOM:
            return status.random
        if cond is Predicate.SINGLE:
            return status.single
        if cond is Predicate.ONESHOT:
            return status.oneshot
        if cond is Predicate.CONSUME:
            return status.consume
        if cond is Predicate.PLAYING:
            return status.playback_state is PlaybackState.PLAYING
        if cond is Predicate.PAUSED:
            return status.playback_state is PlaybackState.PAUSED
        if cond is Predicate.STOPPED:
            return status.playback_state is PlaybackState.STOPPED
        if cond is Predicate.TITLE_EXIST:
            return _song_has(song, 'title')
        if cond is Predicate.ARTIST_EXIST:
            return _song_has(song, 'artist')
        if cond is Predicate.ALBUM_EXIST:
            return _song_has(song, 'album')
        if cond is Predicate.QUEUE_TITLE_EXIST:
            return row is not None and _song_has(row.song, 'title')
        if cond is Predicate.QUEUE_CURRENT:
            return row is not None and row.is_current
        if cond is Predicate.SELECTED:
            return row is not None and row.is_selected
        if cond is Predicate.SEARCHING:
            return store.searching
        if cond is Predicate.FILTERED:
            return store.filtered
        if cond is Predicate.MESSAGE_EXIST:
            return store.message is not None
        raise ValueError(f'Unhandled predicate {cond!r}')
    if isinstance(cond, Not):
        return not evaluate(cond.operand, store, row)
    if isinstance(cond, (And, Or, Xor)):
        left = evaluate(cond.left, store, row)
        right = evaluate(cond.right, store, row)
        if isinstance(cond, And):
            return left and right
        if isinstance(cond, Or):
            return left or right
        return left != right
    raise TypeError(f'Not a condition: {cond!r}')


# Text expressions

def _duration(song):
    if song is None or song.duration is None:
        return ''
    return to_timestamp(song.duration)


def field_value(field, store, row: Optional[RowContext]) -> str:
    song = store.status.current_song
    queue_song = row.song if row is not None else None
    if field is Field.CURRENT_ELAPSED:
        return to_timestamp(store.status.elapsed) if song is not None else ''
    if field is Field.CURRENT_DURATION:
        return _duration(song)
    if field is Field.CURRENT_FILE:
        return song.file if song is not None else ''
    if field is Field.CURRENT_TITLE:
        return (song.title or '') if song is not None else ''
    if field is Field.CURRENT_ARTIST:
        return (song.artist or '') if song is not None else ''
    if field is Field.CURRENT_ALBUM:
        return (song.album or '') if song is not None else ''
    if field is Field.QUEUE_DURATION:
        return _duration(queue_song)
    if field is Field.QUEUE_FILE:
        return queue_song.file if queue_song is not None else ''
    if field is Field.QUEUE_TITLE:
        return (queue_song.title or '') if queue_song is not None else ''
    if field is Field.QUEUE_ARTIST:
        return (queue_song.artist or '') if queue_song is not None else ''
    if field is Field.QUEUE_ALBUM:
        return (queue_song.album or '') if queue_song is not None else ''
    if field is Field.QUERY:
        return store.search.query
    if field is Field.MESSAGE:
        return store.message.text if store.message is not None else ''
    raise ValueError(f'Unhandled field {field!r}')


def flatten(texts, store, row: Optional[RowContext] = None,
            style: TextStyle = DEFAULT_STYLE) -> List[Piece]:
    pieces = []
    _flatten(texts, store, row, style, pieces)
    return pieces


def _flatten(texts, store, row, style, pieces):
    if isinstance(texts, Text):
        if texts.value:
            pieces.append((texts.value, style))
    elif isinstance(texts, Field):
        value = field_value(texts, store, row)
        if value:
            pieces.append((value, style))
    elif isinstance(texts, Parts):
        for item in texts.items:
            _flatten(item, store, row, style, pieces)
    elif isinstance(texts, Styled):
        _flatten(texts.texts, store, row, patch_style(style, texts.styles), pieces)
    elif isinstance(texts, If):
        if evaluate(texts.condition, store, row):
            _flatten(texts.then, store, row, style, pieces)
        elif texts.otherwise is not None:
            _flatten(texts.otherwise, store, row, style, pieces)
    else:
        raise TypeError(f'Not a text expression: {texts!r}')


def _clip(text, width):
    out = []
    used = 0
    for ch in text:
        if wcwidth(ch) < 0:
            ch = ' '
        w = char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return ''.join(out), used


def fit(pieces: List[Piece], width: int, alignment: Alignment = Alignment.LEFT,
        fill_style: TextStyle = DEFAULT_STYLE) -> List[Piece]:
    """Clip pieces to ``width`` cells and pad them out per alignment."""
    if width <= 0:
        return []
    clipped = []
    used = 0
    for text, style in pieces:
        if used >= width:
            break
        shown, w = _clip(text, width - used)
        if shown:
            clipped.append((shown, style))
        used += w
        if len(shown) < len(text):
            break
    spare = width - used
    if alignment is Alignment.RIGHT:
        left = spare
    elif alignment is Alignment.CENTER:
        left = spare // 2
    else:
        left = 0
    right = spare - left
    if left:
        clipped.insert(0, (' ' * left, fill_style))
    if right:
        clipped.append((' ' * right, fill_style))
    return clipped


class Renderer:
    """Draws a widget tree. Remembers the scroll offset of every Queue widget."""

    def __init__(self):
        self.offsets: Dict[int, int] = {}

    def render(self, widget, store, area: Rect) -> Frame:
        frame = Frame(area, [])
        if not area.empty:
            self._render(widget, store, area, frame.spans)
        return frame

    def _render(self, widget, store, area, spans):
        if area.empty:
            return
        if isinstance(widget, (Rows, Columns)):
            areas = split(area, widget.children, vertical=isinstance(widget, Rows))
            for child, child_area in zip(widget.children, areas):
                self._render(child.item, store, child_area, spans)
        elif isinstance(widget, Textbox):
            pieces = flatten(widget.texts, store)
            self._line(spans, area.x, area.y, fit(pieces, area.width, widget.alignment))
            self._blank(spans, area, area.y + 1)
        elif isinstance(widget, Queue):
            self._queue(widget, store, area, spans)
        else:
            raise TypeError(f'Not a widget: {widget!r}')

    @staticmethod
    def _line(spans, x, y, pieces):
        for text, style in pieces:
            spans.append(Span(x, y, text, style))
            x += text_width(text)

    @staticmethod
    def _blank(spans, area, start):
        for y in range(start, area.y + area.height):
            spans.append(Span(area.x, y, ' ' * area.width, DEFAULT_STYLE))

    def scroll_offset(self, widget, store, height):
        view = store.view
        selected = store.selection.index
        offset = self.offsets.get(id(widget), 0)
        if selected is not None:
            if selected < offset:
                offset = selected
            elif selected >= offset + height:
                offset = selected - height + 1
        offset = max(0, min(offset, max(len(view) - height, 0)))
        self.offsets[id(widget)] = offset
        return offset

    def _queue(self, widget, store, area, spans):
        view = store.view
        columns = widget.columns
        column_areas = split(Rect(area.x, area.y, area.width, 1),
                             [column.item for column in columns], vertical=False)
        offset = self.scroll_offset(widget, store, area.height)
        current = store.current_pos
        rows = 0
        for position in range(offset, min(offset + area.height, len(view))):
            queue_index = view[position]
            y = area.y + rows
            context = RowContext(
                song=store.queue[queue_index],
                is_current=queue_index == current,
                is_selected=position == store.selection.index,
            )
            for column, column_area in zip(columns, column_areas):
                if column_area.width <= 0:
                    continue
                base = patch_style(DEFAULT_STYLE,
                                   column.selected_style if context.is_selected else column.style)
                pieces = flatten(column.item.item, store, context, base)
                self._line(spans, column_area.x, y, fit(pieces, column_area.width, fill_style=base))
            rows += 1
        self._blank(spans, area, area.y + rows)
