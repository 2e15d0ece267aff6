"""Memo (saved shortcut) operations on a loaded configuration."""

from typing import List, Sequence, Tuple

from loguru import logger

from .config import Config
from .dataset import EmojiRecord, find_glyph, first_emoji, search
from .errors import InvalidIndexReference, InvalidInput, MemoNotFound


def save_memo(config: Config, term: str, value: str, records: Sequence[EmojiRecord]) -> str:
    """Map ``term`` to an emoji, either given directly or by 1-based search index.

    Returns the stored glyph. Last write wins.
    """
    term = term.strip()
    value = value.strip()
    if not term or not value:
        raise InvalidInput("Cannot save mapping for empty search term or emoji")

    if value.isdigit():
        if not value.isascii():
            raise InvalidInput(f"Index must be written with digits 0-9, got '{value}'")
        index = int(value)
        if index < 1:
            raise InvalidIndexReference(index, 0)
        results = search(records, term, index)
        if len(results) < index:
            raise InvalidIndexReference(index, len(results))
        glyph = results[index - 1].glyph
    else:
        # store the dataset form so the memo matches search results
        record = find_glyph(records, value)
        glyph = record.glyph if record is not None else first_emoji(value)

    previous = config.mappings.get(term)
    config.mappings[term] = glyph
    logger.debug(f"Memo {term!r}: {previous!r} -> {glyph!r}")
    return glyph


def erase_memo(config: Config, term: str) -> str:
    """Remove the memo for ``term`` and return the glyph it pointed at."""
    term = term.strip()
    if not term:
        raise InvalidInput("Cannot erase mapping for empty search term")
    if term not in config.mappings:
        raise MemoNotFound(term)
    return config.mappings.pop(term)


def list_memos(config: Config) -> List[Tuple[str, str]]:
    return sorted(config.mappings.items())
