"""
Built-in configuration used when no config file exists.
"""
from .schema import (
    Alignment, Bg, Column, Columns, Fg, Field, Fixed, If, IndexedColor, Min,
    Modifier, NamedColor, Not, Parts, Predicate, Queue, Ratio, Rows, SetModifier,
    Styled, Text, Textbox,
)

ADDRESS = '127.0.0.1:6600'
JUMP_LINES = 24
SEEK_SECS = 5.0
UPS = 1.0

BOLD = SetModifier(Modifier.BOLD)
ITALIC = SetModifier(Modifier.ITALIC)


def fg(index):
    return Fg(IndexedColor(index))


def header(title, color):
    return Textbox(Styled((fg(color), BOLD), Text(title)))


def queue_column(weight, field, color):
    return Column(
        item=Ratio(weight, If(
            Predicate.QUEUE_CURRENT,
            Styled((ITALIC,), field),
            field,
        )),
        style=(fg(color),),
        selected_style=(Fg(NamedColor('black')), Bg(IndexedColor(color)), BOLD),
    )


def colored(color, texts):
    return Styled((fg(color),), texts)


def now_playing():
    separator = colored(216, Text(' ◆ '))
    return Parts((
        colored(113, Parts((
            If(Predicate.PLAYING, Text('[playing: '), Text('[paused:  ')),
            Field.CURRENT_ELAPSED,
            Text('/'),
            Field.CURRENT_DURATION,
            Text('] '),
        ))),
        If(
            Predicate.TITLE_EXIST,
            Parts((
                colored(149, Field.CURRENT_TITLE),
                If(Predicate.ARTIST_EXIST, Parts((
                    separator,
                    colored(185, Field.CURRENT_ARTIST),
                    If(Predicate.ALBUM_EXIST, Parts((
                        separator,
                        colored(221, Field.CURRENT_ALBUM),
                    ))),
                ))),
            )),
            colored(185, Field.CURRENT_FILE),
        ),
    ))


def status_bar():
    searching = Parts((
        colored(113, Text('Searching: ')),
        colored(185, Field.QUERY),
        colored(185, Text('⎸')),
    ))
    filtered = Parts((
        colored(113, Text('Filter: ')),
        colored(185, Field.QUERY),
        Text('  '),
    ))
    return Styled((BOLD,), If(
        Predicate.SEARCHING,
        searching,
        If(
            Predicate.MESSAGE_EXIST,
            colored(203, Field.MESSAGE),
            Parts((
                If(Predicate.FILTERED, filtered),
                If(Not(Predicate.STOPPED), now_playing()),
            )),
        ),
    ))


def modes():
    return Textbox(colored(81, Parts((
        Text('['),
        If(Predicate.REPEAT, Text('@')),
        If(Predicate.RANDOM, Text('#')),
        If(Predicate.SINGLE, Text('^'), If(Predicate.ONESHOT, Text('!'))),
        If(Predicate.CONSUME, Text('*')),
        Text(']'),
    ))), Alignment.RIGHT)


def layout():
    return Rows((
        Fixed(1, Columns((
            Ratio(12, header('Title', 122)),
            Ratio(10, header('Artist', 158)),
            Ratio(10, header('Album', 194)),
            Ratio(1, header('Time', 230)),
        ))),
        Min(0, Queue((
            queue_column(12, Field.QUEUE_TITLE, 75),
            queue_column(10, Field.QUEUE_ARTIST, 111),
            queue_column(10, Field.QUEUE_ALBUM, 147),
            queue_column(1, Field.QUEUE_DURATION, 183),
        ))),
        Fixed(1, Columns((
            Min(0, Textbox(status_bar())),
            Fixed(7, modes()),
        ))),
    ))
