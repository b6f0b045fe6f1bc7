"""
Queue search: accent- and case-insensitive substring matching.
"""
import unicodedata
from functools import lru_cache
from typing import List, Sequence

from .models import Song


@lru_cache(maxsize=8192)
def normalize(text: str) -> str:
    """Case-fold and strip combining marks, so "Café" matches "CAFE"."""
    decomposed = unicodedata.normalize('NFD', text.casefold())
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def song_fields(song: Song, fields) -> List[str]:
    values = []
    if fields.file:
        values.append(song.file)
    if fields.title and song.title:
        values.append(song.title)
    if fields.artist and song.artist:
        values.append(song.artist)
    if fields.album and song.album:
        values.append(song.album)
    return values


def matches(song: Song, query: str, fields) -> bool:
    if not query:
        return True
    needle = normalize(query)
    return any(needle in normalize(value) for value in song_fields(song, fields))


def filter_queue(queue: Sequence[Song], query: str, fields) -> List[int]:
    """Indices of matching songs, in queue order."""
    if not query:
        return list(range(len(queue)))
    return [i for i, song in enumerate(queue) if matches(song, query, fields)]
