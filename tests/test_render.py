import pytest

from mpdash.config import Config
from mpdash.layout import Rect
from mpdash.models import PlaybackState
from mpdash.render import Renderer, evaluate, fit, flatten
from mpdash.schema import (
    Alignment, And, Bg, Column, Columns, Fg, Field, Fixed, If, IndexedColor, Min,
    Modifier, NamedColor, Not, Or, Parts, Predicate, Queue, Ratio, Rows,
    SetModifier, Styled, Text, Textbox, TextStyle, UnsetModifier, Xor,
)
from mpdash.state import StateStore

from conftest import make_queue, playing

BOLD = SetModifier(Modifier.BOLD)
TRUE = Predicate.REPEAT
FALSE = Predicate.RANDOM

TITLES = Queue((
    Column(Ratio(1, Field.QUEUE_TITLE), style=(Fg(IndexedColor(75)),),
           selected_style=(Bg(IndexedColor(75)), BOLD)),
))


def make_store(layout, *titles, **options):
    store = StateStore(Config(layout=layout, **options))
    store.apply_queue(make_queue(*titles))
    return store


class TestConditions:
    def setup_method(self):
        self.store = make_store(TITLES, 'A')
        self.store.status.repeat = True

    def test_combinators(self):
        assert evaluate(Not(And(TRUE, FALSE)), self.store) is True
        assert evaluate(Xor(TRUE, TRUE), self.store) is False
        assert evaluate(Xor(TRUE, FALSE), self.store) is True
        assert evaluate(Or(FALSE, FALSE), self.store) is False
        assert evaluate(Or(FALSE, TRUE), self.store) is True

    def test_playback_predicates(self):
        assert evaluate(Predicate.STOPPED, self.store)
        assert not evaluate(Predicate.TITLE_EXIST, self.store)
        self.store.apply_status(playing(self.store.queue, 0, PlaybackState.PAUSED))
        assert evaluate(Predicate.PAUSED, self.store)
        assert evaluate(And(Predicate.TITLE_EXIST, Predicate.ALBUM_EXIST), self.store)

    def test_search_and_message(self):
        assert not evaluate(Predicate.SEARCHING, self.store)
        self.store.enter_search()
        assert evaluate(Predicate.SEARCHING, self.store)
        assert not evaluate(Predicate.FILTERED, self.store)
        self.store.notify('hi', now=0.0)
        assert evaluate(Predicate.MESSAGE_EXIST, self.store)


class TestTexts:
    def setup_method(self):
        self.store = make_store(TITLES, 'A', 'B')

    def test_styles_do_not_leak_to_siblings(self):
        texts = Parts((
            Styled((Fg(NamedColor('red')), BOLD), Parts((Text('x'), Styled((UnsetModifier(Modifier.BOLD),), Text('y'))))),
            Text('z'),
        ))
        pieces = flatten(texts, self.store)
        assert [text for text, _ in pieces] == ['x', 'y', 'z']
        assert pieces[0][1] == TextStyle(fg=NamedColor('red'), modifiers=frozenset({Modifier.BOLD}))
        assert pieces[1][1] == TextStyle(fg=NamedColor('red'))
        assert pieces[2][1] == TextStyle()

    def test_if_without_else(self):
        assert flatten(If(FALSE, Text('x')), self.store) == []
        assert flatten(If(FALSE, Text('x'), Text('y')), self.store) == [('y', TextStyle())]

    def test_missing_fields_are_empty(self):
        texts = Parts((Field.CURRENT_TITLE, Field.CURRENT_ELAPSED, Text('|')))
        assert flatten(texts, self.store) == [('|', TextStyle())]

    def test_current_song_fields(self):
        self.store.apply_status(playing(self.store.queue, 1))
        texts = Parts((Field.CURRENT_ELAPSED, Text('/'), Field.CURRENT_DURATION, Text(' '), Field.CURRENT_TITLE))
        assert ''.join(text for text, _ in flatten(texts, self.store)) == '0:12/3:01 B'

    def test_fit_alignment(self):
        pieces = [('ab', TextStyle())]
        assert ''.join(t for t, _ in fit(pieces, 6, Alignment.LEFT)) == 'ab    '
        assert ''.join(t for t, _ in fit(pieces, 6, Alignment.CENTER)) == '  ab  '
        assert ''.join(t for t, _ in fit(pieces, 6, Alignment.RIGHT)) == '    ab'

    def test_fit_clips(self):
        pieces = [('abc', TextStyle()), ('def', TextStyle())]
        assert fit(pieces, 4) == [('abc', TextStyle()), ('d', TextStyle())]
        assert fit(pieces, 0) == []

    def test_fit_wide_characters(self):
        pieces = [('日本語', TextStyle())]
        assert fit(pieces, 5) == [('日本', TextStyle()), (' ', TextStyle())]

    def test_fit_blanks_control_characters(self):
        pieces = [('a\tb\x1b', TextStyle())]
        assert ''.join(t for t, _ in fit(pieces, 5)) == 'a b  '
        assert fit(pieces, 2) == [('a ', TextStyle())]


class TestQueueWidget:
    def test_renders_rows_in_order(self):
        store = make_store(TITLES, 'A', 'B', 'C')
        frame = Renderer().render(TITLES, store, Rect(0, 0, 4, 4))
        assert frame.rows() == ['A   ', 'B   ', 'C   ', '    ']

    def test_search_renders_only_matches(self):
        store = make_store(TITLES, 'A', 'B', 'C')
        renderer = Renderer()
        store.enter_search()
        store.append_query('b')
        assert store.view == (1,)
        frame = renderer.render(TITLES, store, Rect(0, 0, 4, 3))
        assert frame.rows() == ['B   ', '    ', '    ']

    def test_selected_style(self):
        store = make_store(TITLES, 'A', 'B')
        store.move_down()
        frame = Renderer().render(TITLES, store, Rect(0, 0, 3, 2))
        row_a = [span for span in frame.spans if span.y == 0]
        row_b = [span for span in frame.spans if span.y == 1]
        assert all(span.style.fg == IndexedColor(75) for span in row_a)
        assert all(span.style.bg == IndexedColor(75) for span in row_b)
        assert all(Modifier.BOLD in span.style.modifiers for span in row_b)

    def test_current_row(self):
        layout = Queue((Column(Fixed(3, If(Predicate.QUEUE_CURRENT, Text('>'), Text(' ')))),
                        Column(Min(0, Field.QUEUE_TITLE))))
        store = make_store(layout, 'A', 'B', 'C')
        store.apply_status(playing(store.queue, 1))
        frame = Renderer().render(layout, store, Rect(0, 0, 6, 3))
        assert frame.rows() == ['   A  ', '>  B  ', '   C  ']

    def test_scrolls_to_selection(self):
        store = make_store(TITLES, 'A', 'B', 'C', 'D', 'E')
        renderer = Renderer()
        area = Rect(0, 0, 2, 2)
        store.goto_bottom()
        assert renderer.render(TITLES, store, area).rows() == ['D ', 'E ']
        store.move_up()
        assert renderer.render(TITLES, store, area).rows() == ['D ', 'E ']
        store.move_up()
        assert renderer.render(TITLES, store, area).rows() == ['C ', 'D ']
        store.goto_top()
        assert renderer.render(TITLES, store, area).rows() == ['A ', 'B ']


class TestLayoutTree:
    def test_rows_and_columns(self):
        layout = Rows((
            Fixed(1, Columns((Ratio(1, Textbox(Text('L'))), Ratio(1, Textbox(Text('R'), Alignment.RIGHT))))),
            Min(0, TITLES),
        ))
        store = make_store(layout, 'A')
        frame = Renderer().render(layout, store, Rect(0, 0, 6, 3))
        assert frame.rows() == ['L    R', 'A     ', '      ']

    @pytest.mark.parametrize('area', [Rect(0, 0, 0, 5), Rect(0, 0, 5, 0), Rect(0, 0, -3, 2)])
    def test_empty_area(self, area):
        store = make_store(TITLES, 'A')
        assert Renderer().render(TITLES, store, area).spans == []

    def test_default_layout(self):
        store = make_store(Config().layout, 'A', 'B', 'C')
        store.apply_status(playing(store.queue, 0))
        store.status.repeat = True
        frame = Renderer().render(Config().layout, store, Rect(0, 0, 66, 6))
        rows = frame.rows()
        assert rows[0].startswith('Title')
        assert rows[1].startswith('A')
        assert rows[-1].endswith('    [@]')
        assert '[playing: 0:12/3:00] A' in rows[-1]

    def test_default_layout_message(self):
        store = make_store(Config().layout, 'A')
        store.notify('No such song', now=0.0)
        rows = Renderer().render(Config().layout, store, Rect(0, 0, 40, 3)).rows()
        assert rows[-1].startswith('No such song')
