"""
The blessed side of the dashboard: turns rendered frames into escape sequences.
"""
from functools import partial

import blessed

from .layout import Rect
from .schema import IndexedColor, Modifier, NamedColor, RgbColor

echo = partial(print, end='', flush=True)

# layout color names -> blessed color names
COLORS = {
    'black': 'black',
    'red': 'red',
    'green': 'green',
    'yellow': 'yellow',
    'blue': 'blue',
    'magenta': 'magenta',
    'cyan': 'cyan',
    'gray': 'white',
    'darkgray': 'bright_black',
    'lightred': 'bright_red',
    'lightgreen': 'bright_green',
    'lightyellow': 'bright_yellow',
    'lightblue': 'bright_blue',
    'lightmagenta': 'bright_magenta',
    'lightcyan': 'bright_cyan',
    'white': 'bright_white',
}

MODIFIERS = {
    Modifier.BOLD: 'bold',
    Modifier.DIM: 'dim',
    Modifier.ITALIC: 'italic',
    Modifier.UNDERLINED: 'underline',
    Modifier.SLOW_BLINK: 'blink',
    Modifier.RAPID_BLINK: 'blink',
    Modifier.REVERSED: 'reverse',
    Modifier.HIDDEN: 'invis',
    Modifier.CROSSED_OUT: 'smxx',
}


class PlayerTerminal(blessed.Terminal):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._style_cache = {}

    @property
    def area(self):
        return Rect(0, 0, self.width, self.height)

    def _color(self, color, background):
        prefix = 'on_' if background else ''
        if isinstance(color, NamedColor):
            name = COLORS.get(color.name)
            if name is None:  # reset
                return ''
            return getattr(self, prefix + name)
        if isinstance(color, IndexedColor):
            return (self.on_color if background else self.color)(color.index)
        if isinstance(color, RgbColor):
            method = self.on_color_rgb if background else self.color_rgb
            return method(color.r, color.g, color.b)
        raise TypeError(f'Not a color: {color!r}')

    def styled(self, style):
        """Escape sequence that switches the terminal to ``style``."""
        if style not in self._style_cache:
            sequence = str(self.normal)
            if style.fg is not None:
                sequence += self._color(style.fg, background=False)
            if style.bg is not None:
                sequence += self._color(style.bg, background=True)
            for modifier in sorted(style.modifiers, key=lambda m: m.value):
                sequence += getattr(self, MODIFIERS[modifier])
            self._style_cache[style] = sequence
        return self._style_cache[style]

    def draw(self, frame):
        out = []
        for span in frame.spans:
            out.append(self.move_xy(span.x, span.y) + self.styled(span.style) + span.text)
        out.append(self.normal)
        return ''.join(out)

    def paint(self, frame):
        echo(self.draw(frame))
