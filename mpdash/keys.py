"""
Maps blessed keystrokes to dashboard actions.
"""
import enum
from typing import Optional, Tuple

CTRL_Q = '\x11'


class Action(enum.Enum):
    QUIT = 'quit'
    TOGGLE_REPEAT = 'toggle_repeat'
    TOGGLE_RANDOM = 'toggle_random'
    TOGGLE_SINGLE = 'toggle_single'
    TOGGLE_ONESHOT = 'toggle_oneshot'
    TOGGLE_CONSUME = 'toggle_consume'
    TOGGLE_PAUSE = 'toggle_pause'
    STOP = 'stop'
    SEEK_BACKWARD = 'seek_backward'
    SEEK_FORWARD = 'seek_forward'
    PREVIOUS = 'previous_track'
    NEXT = 'next_track'
    PLAY = 'play_selected'
    DOWN = 'move_down'
    UP = 'move_up'
    PAGE_DOWN = 'page_down'
    PAGE_UP = 'page_up'
    TOP = 'goto_top'
    BOTTOM = 'goto_bottom'
    RESELECT = 'reselect'
    SEARCH = 'enter_search'
    CONFIRM_SEARCH = 'confirm_search'
    QUIT_SEARCH = 'exit_search'
    SEARCH_INPUT = 'append_query'
    SEARCH_BACKSPACE = 'backspace_query'


CHARACTERS = {
    'q': Action.QUIT,
    CTRL_Q: Action.QUIT,
    'r': Action.TOGGLE_REPEAT,
    'R': Action.TOGGLE_RANDOM,
    's': Action.TOGGLE_SINGLE,
    'S': Action.TOGGLE_ONESHOT,
    'c': Action.TOGGLE_CONSUME,
    'p': Action.TOGGLE_PAUSE,
    ';': Action.STOP,
    ' ': Action.RESELECT,
    'h': Action.SEEK_BACKWARD,
    'l': Action.SEEK_FORWARD,
    'H': Action.PREVIOUS,
    'L': Action.NEXT,
    'j': Action.DOWN,
    'k': Action.UP,
    'J': Action.PAGE_DOWN,
    'K': Action.PAGE_UP,
    'g': Action.TOP,
    'G': Action.BOTTOM,
    '/': Action.SEARCH,
    '\r': Action.PLAY,
    '\n': Action.PLAY,
    '\x1b': Action.QUIT_SEARCH,
}

SEQUENCES = {
    'KEY_LEFT': Action.SEEK_BACKWARD,
    'KEY_RIGHT': Action.SEEK_FORWARD,
    'KEY_DOWN': Action.DOWN,
    'KEY_UP': Action.UP,
    'KEY_PGDOWN': Action.PAGE_DOWN,
    'KEY_PGUP': Action.PAGE_UP,
    'KEY_HOME': Action.TOP,
    'KEY_END': Action.BOTTOM,
    'KEY_ENTER': Action.PLAY,
    'KEY_ESCAPE': Action.QUIT_SEARCH,
}

SEARCH_SEQUENCES = {
    'KEY_ENTER': Action.CONFIRM_SEARCH,
    'KEY_ESCAPE': Action.QUIT_SEARCH,
    'KEY_BACKSPACE': Action.SEARCH_BACKSPACE,
    'KEY_DELETE': Action.SEARCH_BACKSPACE,
    'KEY_LEFT': Action.SEEK_BACKWARD,
    'KEY_RIGHT': Action.SEEK_FORWARD,
    'KEY_DOWN': Action.DOWN,
    'KEY_UP': Action.UP,
    'KEY_PGDOWN': Action.PAGE_DOWN,
    'KEY_PGUP': Action.PAGE_UP,
}


def key_to_action(inp, searching: bool) -> Optional[Tuple[Action, Optional[str]]]:
    """Return ``(action, payload)`` for a keystroke, or None to ignore it.

    While searching every printable character goes into the query; only
    Ctrl-Q, the arrow keys and the search keys keep their meaning.
    """
    if not inp:
        return None
    if inp.is_sequence:
        table = SEARCH_SEQUENCES if searching else SEQUENCES
        action = table.get(inp.name)
        return (action, None) if action is not None else None
    text = str(inp)
    if searching:
        if text == CTRL_Q:
            return Action.QUIT, None
        if text in ('\r', '\n'):
            return Action.CONFIRM_SEARCH, None
        if text in ('\x7f', '\x08'):
            return Action.SEARCH_BACKSPACE, None
        if text == '\x1b':
            return Action.QUIT_SEARCH, None
        if text.isprintable():
            return Action.SEARCH_INPUT, text
        return None
    action = CHARACTERS.get(text)
    return (action, None) if action is not None else None
