"""
Configuration loading for mpdash.

The config file is JSON. Tagged unions are written as one-key objects
(``{"Fixed": [1, ...]}``), variants without data as bare strings
(``"Bold"``), tuples as arrays.
"""
import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from . import defaults
from .client import parse_address
from .logging_config import ConfigError, DaemonConnectionError, get_logger
from .schema import (
    EMPTY, MAX_DEPTH, Alignment, And, Bg, Column, Columns, Fg, Field, Fixed, If,
    IndexedColor, Max, Min, Modifier, NamedColor, Not, Or, Parts, Predicate, Queue,
    Ratio, RgbColor, Rows, SetModifier, Styled, Text, Textbox, UnsetModifier, Xor,
    validate_layout,
)

logger = get_logger('config')

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass(frozen=True)
class SearchFields:
    file: bool = False
    title: bool = True
    artist: bool = True
    album: bool = True


@dataclass(frozen=True)
class Config:
    """Application configuration, fixed for the lifetime of the process."""

    address: str = defaults.ADDRESS
    jump_lines: int = defaults.JUMP_LINES
    seek_secs: float = defaults.SEEK_SECS
    ups: float = defaults.UPS
    cycle: bool = False
    clear_query_on_play: bool = False
    search_fields: SearchFields = field(default_factory=SearchFields)
    layout: Any = field(default_factory=defaults.layout)
    log_level: str = 'WARNING'
    log_file: Optional[str] = None

    def with_overrides(self, **overrides) -> 'Config':
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def default_config_path() -> Path:
    xdg_config = os.environ.get('XDG_CONFIG_HOME')
    if xdg_config:
        return Path(xdg_config) / 'mpdash' / 'mpdash.json'
    return Path.home() / '.config' / 'mpdash' / 'mpdash.json'


# Layout decoding

def _tagged(value, path):
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value.items()))
    raise ConfigError(f'Expected a variant name or a one-key object at {path}, got {value!r}')


def _pair(payload, path, tag):
    if not isinstance(payload, list) or len(payload) != 2:
        raise ConfigError(f'{tag} takes two values at {path}')
    return payload


def _depth(depth, path):
    if depth > MAX_DEPTH:
        raise ConfigError(f'Layout nested deeper than {MAX_DEPTH} levels at {path}')


def _rgb(values, path):
    if not all(isinstance(c, int) and not isinstance(c, bool) for c in values):
        raise ConfigError(f'RGB components must be integers at {path}')
    return RgbColor(*values)


def decode_color(value, path):
    if isinstance(value, bool):
        raise ConfigError(f'Invalid color at {path}: {value!r}')
    if isinstance(value, int):
        return IndexedColor(value)
    if isinstance(value, list) and len(value) == 3:
        return _rgb(value, path)
    if isinstance(value, str):
        if value.startswith('#') and len(value) == 7:
            try:
                return RgbColor(int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))
            except ValueError:
                raise ConfigError(f'Invalid hex color at {path}: {value!r}')
        return NamedColor(value.replace('_', '').replace(' ', '').lower())
    tag, payload = _tagged(value, path)
    if tag == 'Indexed' and isinstance(payload, int) and not isinstance(payload, bool):
        return IndexedColor(payload)
    if tag == 'Rgb' and isinstance(payload, list) and len(payload) == 3:
        return _rgb(payload, path)
    raise ConfigError(f'Invalid color at {path}: {value!r}')


MODIFIERS = {m.value: m for m in Modifier}


def decode_style(value, path):
    tag, payload = _tagged(value, path)
    if tag == 'Fg':
        return Fg(decode_color(payload, f'{path}.Fg'))
    if tag == 'Bg':
        return Bg(decode_color(payload, f'{path}.Bg'))
    if payload is None:
        if tag in MODIFIERS:
            return SetModifier(MODIFIERS[tag])
        if tag.startswith('No') and tag[2:] in MODIFIERS:
            return UnsetModifier(MODIFIERS[tag[2:]])
    raise ConfigError(f'Unknown style at {path}: {value!r}')


def decode_styles(value, path):
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f'Expected a list of styles at {path}')
    return tuple(decode_style(v, f'{path}[{i}]') for i, v in enumerate(value))


PREDICATES = {p.value: p for p in Predicate}
BINARY = {'And': And, 'Or': Or, 'Xor': Xor}


def decode_condition(value, path='condition', depth=0):
    _depth(depth, path)
    tag, payload = _tagged(value, path)
    if payload is None and tag in PREDICATES:
        return PREDICATES[tag]
    if tag == 'Not':
        return Not(decode_condition(payload, f'{path}.Not', depth + 1))
    if tag in BINARY:
        left, right = _pair(payload, path, tag)
        return BINARY[tag](
            decode_condition(left, f'{path}.{tag}[0]', depth + 1),
            decode_condition(right, f'{path}.{tag}[1]', depth + 1),
        )
    raise ConfigError(f'Unknown condition at {path}: {value!r}')


FIELDS = {f.value: f for f in Field}


def decode_texts(value, path='texts', depth=0):
    _depth(depth, path)
    if value is None:
        return EMPTY
    if isinstance(value, list):
        return Parts(tuple(decode_texts(v, f'{path}[{i}]', depth + 1) for i, v in enumerate(value)))
    tag, payload = _tagged(value, path)
    if payload is None and tag in FIELDS:
        return FIELDS[tag]
    if tag == 'Text':
        if not isinstance(payload, str):
            raise ConfigError(f'Text takes a string at {path}')
        return Text(payload)
    if tag == 'Parts':
        return decode_texts(payload if payload is not None else [], f'{path}.Parts', depth)
    if tag == 'Styled':
        styles, texts = _pair(payload, path, tag)
        return Styled(decode_styles(styles, f'{path}.Styled'),
                      decode_texts(texts, f'{path}.Styled', depth + 1))
    if tag == 'If':
        if not isinstance(payload, list) or len(payload) not in (2, 3):
            raise ConfigError(f'If takes a condition, a text and an optional else text at {path}')
        otherwise = None
        if len(payload) == 3 and payload[2] is not None:
            otherwise = decode_texts(payload[2], f'{path}.If[2]', depth + 1)
        return If(
            decode_condition(payload[0], f'{path}.If', depth + 1),
            decode_texts(payload[1], f'{path}.If[1]', depth + 1),
            otherwise,
        )
    raise ConfigError(f'Unknown text expression at {path}: {value!r}')


CONSTRAINTS = {'Max': Max, 'Min': Min, 'Fixed': Fixed, 'Ratio': Ratio}


def decode_constrained(value, path, depth, decode_item):
    tag, payload = _tagged(value, path)
    if tag not in CONSTRAINTS:
        raise ConfigError(f'Expected Max, Min, Fixed or Ratio at {path}, got {tag!r}')
    n, item = _pair(payload, path, tag)
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise ConfigError(f'{tag} needs a non-negative integer at {path}')
    return CONSTRAINTS[tag](n, decode_item(item, f'{path}.{tag}', depth + 1))


def decode_column(value, path, depth):
    if not isinstance(value, dict) or 'item' not in value:
        raise ConfigError(f'A queue column needs an "item" at {path}')
    unknown = set(value) - {'item', 'style', 'selected_style'}
    if unknown:
        raise ConfigError(f'Unknown column keys at {path}: {sorted(unknown)}')
    return Column(
        item=decode_constrained(value['item'], f'{path}.item', depth, decode_texts),
        style=decode_styles(value.get('style'), f'{path}.style'),
        selected_style=decode_styles(value.get('selected_style'), f'{path}.selected_style'),
    )


TEXTBOXES = {
    'Textbox': Alignment.LEFT,
    'TextboxC': Alignment.CENTER,
    'TextboxR': Alignment.RIGHT,
}


def decode_widget(value, path='layout', depth=0):
    _depth(depth, path)
    tag, payload = _tagged(value, path)
    if tag in ('Rows', 'Columns'):
        if not isinstance(payload, list):
            raise ConfigError(f'{tag} takes a list at {path}')
        children = tuple(
            decode_constrained(v, f'{path}.{tag}[{i}]', depth, decode_widget)
            for i, v in enumerate(payload)
        )
        return Rows(children) if tag == 'Rows' else Columns(children)
    if tag in TEXTBOXES:
        return Textbox(decode_texts(payload, f'{path}.{tag}', depth + 1), TEXTBOXES[tag])
    if tag == 'Queue':
        if isinstance(payload, dict) and set(payload) == {'columns'}:
            payload = payload['columns']
        if not isinstance(payload, list):
            raise ConfigError(f'Queue takes a list of columns at {path}')
        return Queue(tuple(decode_column(v, f'{path}.Queue[{i}]', depth + 1) for i, v in enumerate(payload)))
    raise ConfigError(f'Unknown widget at {path}: {value!r}')


# Config file

def _expect(data, key, kind, path):
    value = data[key]
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise ConfigError(f'{path}: "{key}" must be {kind.__name__}, got {value!r}')
    return value


def config_from_dict(data: Dict[str, Any], path: str = '<config>') -> Config:
    """Build and validate a Config from decoded JSON data."""
    if not isinstance(data, dict):
        raise ConfigError(f'{path}: top level must be an object')
    values = {}
    for key, kind in (('address', str), ('jump_lines', int), ('seek_secs', float),
                      ('ups', float), ('cycle', bool), ('clear_query_on_play', bool),
                      ('log_level', str)):
        if key in data:
            values[key] = _expect(data, key, kind, path)
    if data.get('log_file') is not None:
        values['log_file'] = _expect(data, 'log_file', str, path)
    if 'search_fields' in data:
        fields = data['search_fields']
        if not isinstance(fields, dict) or not set(fields) <= {'file', 'title', 'artist', 'album'}:
            raise ConfigError(f'{path}: "search_fields" takes file, title, artist and album flags')
        values['search_fields'] = SearchFields(**{k: _expect(fields, k, bool, path) for k in fields})
    if 'layout' in data:
        values['layout'] = decode_widget(data['layout'])

    unknown = set(data) - set(Config.__dataclass_fields__)
    if unknown:
        logger.warning(f'{path}: ignoring unknown keys {sorted(unknown)}')

    config = Config(**values)
    validate_config(config, path)
    return config


def validate_config(config: Config, path: str = '<config>') -> Config:
    if config.jump_lines < 0:
        raise ConfigError(f'{path}: jump_lines must not be negative')
    if config.seek_secs < 0:
        raise ConfigError(f'{path}: seek_secs must not be negative')
    if config.ups <= 0:
        raise ConfigError(f'{path}: ups must be positive')
    if config.log_level.upper() not in LOG_LEVELS:
        raise ConfigError(f'{path}: invalid log level {config.log_level!r}')
    validate_layout(config.layout)
    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load the config file, or the built-in defaults when there is none.

    An explicitly given path must exist; the default path may be missing.
    """
    explicit = config_path is not None
    path = Path(config_path).expanduser() if explicit else default_config_path()
    if not path.is_file():
        if explicit:
            raise ConfigError(f'Config file not found: {path}')
        logger.info(f'Config file not found at {path}, using defaults')
        return validate_config(Config())
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f'Failed to read {path}: {e}') from e
    except json.JSONDecodeError as e:
        raise ConfigError(f'Failed to parse {path}: {e}') from e
    except RecursionError as e:
        raise ConfigError(f'Failed to parse {path}: nested too deeply') from e
    config = config_from_dict(data, str(path))
    logger.info(f'Loaded configuration from {path}')
    return config


def resolve_address(cli_address: Optional[str], config_address: str,
                    environ: Mapping[str, str] = os.environ) -> str:
    """Pick the daemon address: command line, then MPD_HOST/MPD_PORT, then config."""
    if cli_address:
        return cli_address
    env_host = environ.get('MPD_HOST')
    env_port = environ.get('MPD_PORT')
    if not env_host and not env_port:
        return config_address
    if env_host and '@' in env_host[1:]:
        # password@host; passwords are not supported, keep the host
        env_host = env_host.rsplit('@', 1)[1]
    if env_host and env_host.startswith(('/', '~', '@')):
        return env_host
    try:
        host, port = parse_address(config_address)
    except DaemonConnectionError:
        host, port = config_address, None
    if port is None:
        host, port = 'localhost', None
    host = env_host or host
    port = env_port or port or 6600
    if ':' in host:
        host = f'[{host}]'
    return f'{host}:{port}'
