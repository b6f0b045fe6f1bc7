"""
The layout language: widgets, text expressions, conditions and styles.

Every node is an immutable value. Leaves that carry no data (field
accessors, condition atoms, modifiers) are enum members, everything else is
a frozen dataclass, so a layout tree can be compared and hashed.
"""
import enum
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple, Union

from .logging_config import ConfigError

MAX_DEPTH = 64


# Colors and styles

@dataclass(frozen=True)
class NamedColor:
    name: str


@dataclass(frozen=True)
class IndexedColor:
    index: int


@dataclass(frozen=True)
class RgbColor:
    r: int
    g: int
    b: int


Color = Union[NamedColor, IndexedColor, RgbColor]

COLOR_NAMES = (
    'reset', 'black', 'red', 'green', 'yellow', 'blue', 'magenta', 'cyan',
    'gray', 'darkgray', 'lightred', 'lightgreen', 'lightyellow', 'lightblue',
    'lightmagenta', 'lightcyan', 'white',
)


class Modifier(enum.Enum):
    BOLD = 'Bold'
    DIM = 'Dim'
    ITALIC = 'Italic'
    UNDERLINED = 'Underlined'
    SLOW_BLINK = 'SlowBlink'
    RAPID_BLINK = 'RapidBlink'
    REVERSED = 'Reversed'
    HIDDEN = 'Hidden'
    CROSSED_OUT = 'CrossedOut'


@dataclass(frozen=True)
class Fg:
    color: Color


@dataclass(frozen=True)
class Bg:
    color: Color


@dataclass(frozen=True)
class SetModifier:
    modifier: Modifier


@dataclass(frozen=True)
class UnsetModifier:
    modifier: Modifier


Style = Union[Fg, Bg, SetModifier, UnsetModifier]


@dataclass(frozen=True)
class TextStyle:
    """The running style a span is drawn with."""
    fg: Optional[Color] = None
    bg: Optional[Color] = None
    modifiers: FrozenSet[Modifier] = field(default_factory=frozenset)


def patch_style(style: TextStyle, styles) -> TextStyle:
    """Fold a list of style toggles onto ``style``, left to right."""
    for op in styles:
        if isinstance(op, Fg):
            style = replace(style, fg=op.color)
        elif isinstance(op, Bg):
            style = replace(style, bg=op.color)
        elif isinstance(op, SetModifier):
            style = replace(style, modifiers=style.modifiers | {op.modifier})
        elif isinstance(op, UnsetModifier):
            style = replace(style, modifiers=style.modifiers - {op.modifier})
        else:
            raise TypeError(f'Not a style: {op!r}')
    return style


# Conditions

class Predicate(enum.Enum):
    REPEAT = 'Repeat'
    RANDOM = 'Random'
    SINGLE = 'Single'
    ONESHOT = 'Oneshot'
    CONSUME = 'Consume'
    PLAYING = 'Playing'
    PAUSED = 'Paused'
    STOPPED = 'Stopped'
    TITLE_EXIST = 'TitleExist'
    ARTIST_EXIST = 'ArtistExist'
    ALBUM_EXIST = 'AlbumExist'
    QUEUE_TITLE_EXIST = 'QueueTitleExist'
    QUEUE_CURRENT = 'QueueCurrent'
    SELECTED = 'Selected'
    SEARCHING = 'Searching'
    FILTERED = 'Filtered'
    MESSAGE_EXIST = 'MessageExist'


@dataclass(frozen=True)
class Not:
    operand: 'Condition'


@dataclass(frozen=True)
class And:
    left: 'Condition'
    right: 'Condition'


@dataclass(frozen=True)
class Or:
    left: 'Condition'
    right: 'Condition'


@dataclass(frozen=True)
class Xor:
    left: 'Condition'
    right: 'Condition'


Condition = Union[Predicate, Not, And, Or, Xor]

QUEUE_PREDICATES = frozenset({
    Predicate.QUEUE_TITLE_EXIST, Predicate.QUEUE_CURRENT, Predicate.SELECTED,
})


# Text expressions

class Field(enum.Enum):
    CURRENT_ELAPSED = 'CurrentElapsed'
    CURRENT_DURATION = 'CurrentDuration'
    CURRENT_FILE = 'CurrentFile'
    CURRENT_TITLE = 'CurrentTitle'
    CURRENT_ARTIST = 'CurrentArtist'
    CURRENT_ALBUM = 'CurrentAlbum'
    QUEUE_DURATION = 'QueueDuration'
    QUEUE_FILE = 'QueueFile'
    QUEUE_TITLE = 'QueueTitle'
    QUEUE_ARTIST = 'QueueArtist'
    QUEUE_ALBUM = 'QueueAlbum'
    QUERY = 'Query'
    MESSAGE = 'Message'


QUEUE_FIELDS = frozenset({
    Field.QUEUE_DURATION, Field.QUEUE_FILE, Field.QUEUE_TITLE,
    Field.QUEUE_ARTIST, Field.QUEUE_ALBUM,
})


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Styled:
    styles: Tuple[Style, ...]
    texts: 'Texts'


@dataclass(frozen=True)
class Parts:
    items: Tuple['Texts', ...]


@dataclass(frozen=True)
class If:
    condition: Condition
    then: 'Texts'
    otherwise: Optional['Texts'] = None


Texts = Union[Field, Text, Styled, Parts, If]
EMPTY = Parts(())


# Geometry

@dataclass(frozen=True)
class Max:
    n: int
    item: object


@dataclass(frozen=True)
class Min:
    n: int
    item: object


@dataclass(frozen=True)
class Fixed:
    n: int
    item: object


@dataclass(frozen=True)
class Ratio:
    n: int
    item: object


Constrained = Union[Max, Min, Fixed, Ratio]
CONSTRAINTS = (Max, Min, Fixed, Ratio)


# Widgets

class Alignment(enum.Enum):
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'


@dataclass(frozen=True)
class Column:
    item: Constrained
    style: Tuple[Style, ...] = ()
    selected_style: Tuple[Style, ...] = ()


@dataclass(frozen=True)
class Rows:
    children: Tuple[Constrained, ...]


@dataclass(frozen=True)
class Columns:
    children: Tuple[Constrained, ...]


@dataclass(frozen=True)
class Textbox:
    texts: Texts
    alignment: Alignment = Alignment.LEFT


@dataclass(frozen=True)
class Queue:
    columns: Tuple[Column, ...]


Widget = Union[Rows, Columns, Textbox, Queue]


# Validation

def _check_depth(depth, path):
    if depth > MAX_DEPTH:
        raise ConfigError(f'Layout nested deeper than {MAX_DEPTH} levels at {path}')


def _check_constraint(node, path):
    if not isinstance(node, CONSTRAINTS):
        raise ConfigError(f'Expected Max, Min, Fixed or Ratio at {path}, got {node!r}')
    if not isinstance(node.n, int) or isinstance(node.n, bool) or node.n < 0:
        raise ConfigError(f'{type(node).__name__} needs a non-negative integer at {path}')


def validate_condition(cond, in_queue, path='condition', depth=0):
    _check_depth(depth, path)
    if isinstance(cond, Predicate):
        if cond in QUEUE_PREDICATES and not in_queue:
            raise ConfigError(f'{cond.value} is only valid inside a Queue column ({path})')
    elif isinstance(cond, Not):
        validate_condition(cond.operand, in_queue, f'{path}.Not', depth + 1)
    elif isinstance(cond, (And, Or, Xor)):
        name = type(cond).__name__
        validate_condition(cond.left, in_queue, f'{path}.{name}[0]', depth + 1)
        validate_condition(cond.right, in_queue, f'{path}.{name}[1]', depth + 1)
    else:
        raise ConfigError(f'Not a condition at {path}: {cond!r}')


def validate_texts(texts, in_queue, path='texts', depth=0):
    _check_depth(depth, path)
    if isinstance(texts, Field):
        if texts in QUEUE_FIELDS and not in_queue:
            raise ConfigError(f'{texts.value} is only valid inside a Queue column ({path})')
    elif isinstance(texts, Text):
        if not isinstance(texts.value, str):
            raise ConfigError(f'Text needs a string at {path}')
    elif isinstance(texts, Styled):
        validate_styles(texts.styles, f'{path}.Styled')
        validate_texts(texts.texts, in_queue, f'{path}.Styled', depth + 1)
    elif isinstance(texts, Parts):
        for i, item in enumerate(texts.items):
            validate_texts(item, in_queue, f'{path}.Parts[{i}]', depth + 1)
    elif isinstance(texts, If):
        validate_condition(texts.condition, in_queue, f'{path}.If', depth + 1)
        validate_texts(texts.then, in_queue, f'{path}.If[1]', depth + 1)
        if texts.otherwise is not None:
            validate_texts(texts.otherwise, in_queue, f'{path}.If[2]', depth + 1)
    else:
        raise ConfigError(f'Not a text expression at {path}: {texts!r}')


def validate_styles(styles, path):
    for op in styles:
        if not isinstance(op, (Fg, Bg, SetModifier, UnsetModifier)):
            raise ConfigError(f'Not a style at {path}: {op!r}')
        if isinstance(op, (Fg, Bg)):
            color = op.color
            if isinstance(color, IndexedColor) and not 0 <= color.index <= 255:
                raise ConfigError(f'Color index out of range at {path}: {color.index}')
            if isinstance(color, RgbColor) and not all(0 <= c <= 255 for c in (color.r, color.g, color.b)):
                raise ConfigError(f'RGB component out of range at {path}')
            if isinstance(color, NamedColor) and color.name not in COLOR_NAMES:
                raise ConfigError(f'Unknown color name at {path}: {color.name!r}')


def validate_layout(widget, path='layout', depth=0):
    """Reject layouts the renderer can't evaluate.

    Queue-scoped fields and conditions must sit inside a Queue column, and
    nesting is bounded so rendering never recurses without limit.
    """
    _check_depth(depth, path)
    if isinstance(widget, (Rows, Columns)):
        name = type(widget).__name__
        for i, child in enumerate(widget.children):
            child_path = f'{path}.{name}[{i}]'
            _check_constraint(child, child_path)
            validate_layout(child.item, child_path, depth + 1)
    elif isinstance(widget, Textbox):
        validate_texts(widget.texts, False, f'{path}.Textbox', depth + 1)
    elif isinstance(widget, Queue):
        for i, column in enumerate(widget.columns):
            column_path = f'{path}.Queue[{i}]'
            if not isinstance(column, Column):
                raise ConfigError(f'Expected a column at {column_path}')
            _check_constraint(column.item, column_path)
            validate_styles(column.style, f'{column_path}.style')
            validate_styles(column.selected_style, f'{column_path}.selected_style')
            validate_texts(column.item.item, True, f'{column_path}.item', depth + 1)
    else:
        raise ConfigError(f'Not a widget at {path}: {widget!r}')
    return widget
