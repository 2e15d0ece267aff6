"""Emoji dataset and keyword search.

Records come from the ``emoji`` package's CLDR table (fully-qualified
entries only), enriched with the bundled ``data/keywords.json`` table.
Search walks a fixed list of match tiers so results are deterministic:

1. name equals the whole term
2. every term word is a whole word of the name
3. every term word is a whole word of one keyword
4. every term word is a substring of the name
5. every term word is a substring of one keyword
6. every term word is a substring of the definition
"""

import json
import re
import unicodedata
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import emoji
from loguru import logger

from .models import Candidate

KEYWORDS_PATH = Path(__file__).parent / "data" / "keywords.json"

_WORD_SPLIT = re.compile(r"[^\w]+", re.UNICODE)


@dataclass
class EmojiRecord:
    """A single dataset entry."""
    glyph: str
    name: str
    keywords: List[str] = field(default_factory=list)
    shortcode: Optional[str] = None
    definition: Optional[str] = None

    def to_candidate(self, rank: Optional[int] = None, source: str = "search") -> Candidate:
        return Candidate(glyph=self.glyph, rank=rank, record=self, source=source)


def _clean_name(code: str) -> str:
    return code.strip(":").replace("_", " ")


def _unicode_definition(glyph: str, name: str) -> Optional[str]:
    try:
        uname = unicodedata.name(glyph[0]).lower()
    except ValueError:
        return None
    if uname == name.lower():
        return None
    return uname


def load_keyword_table(path: Path = KEYWORDS_PATH) -> Dict[str, List[str]]:
    """Load glyph -> extra keywords."""
    if not path.exists():
        logger.warning(f"Keyword table missing: {path}")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def build_records(
    emoji_data: Optional[Dict[str, dict]] = None,
    keyword_table: Optional[Dict[str, List[str]]] = None,
) -> List[EmojiRecord]:
    """Turn the emoji package table into ``EmojiRecord``s."""
    emoji_data = emoji.EMOJI_DATA if emoji_data is None else emoji_data
    keyword_table = load_keyword_table() if keyword_table is None else keyword_table
    fully_qualified = emoji.STATUS["fully_qualified"]

    records = []
    for glyph, data in emoji_data.items():
        if data.get("status") != fully_qualified:
            continue
        code = data.get("en")
        if not code:
            continue
        name = _clean_name(code)
        keywords = [_clean_name(a) for a in data.get("alias", [])]
        keywords.extend(keyword_table.get(glyph, []))
        records.append(EmojiRecord(
            glyph=glyph,
            name=name,
            keywords=keywords,
            shortcode=code,
            definition=_unicode_definition(glyph, name),
        ))
    return records


@lru_cache(maxsize=1)
def load_emojis() -> List[EmojiRecord]:
    """Build the dataset once per process."""
    records = build_records()
    logger.debug(f"Loaded {len(records)} emojis")
    return records


def _words(text: str) -> List[str]:
    return [w for w in _WORD_SPLIT.split(text.lower()) if w]


def _all_words_match(text: str, search_words: Sequence[str], exact: bool) -> bool:
    text = text.lower()
    if exact:
        words = set(_words(text))
        return all(w in words for w in search_words)
    return all(w in text for w in search_words)


def _tiers(term: str, search_words: Sequence[str]) -> List[Callable[[EmojiRecord], bool]]:
    lowered = term.lower()
    return [
        lambda e: e.name.lower() == lowered,
        lambda e: _all_words_match(e.name, search_words, True),
        lambda e: any(_all_words_match(k, search_words, True) for k in e.keywords),
        lambda e: _all_words_match(e.name, search_words, False),
        lambda e: any(_all_words_match(k, search_words, False) for k in e.keywords),
        lambda e: bool(e.definition) and _all_words_match(e.definition, search_words, False),
    ]


def search(records: Iterable[EmojiRecord], term: str, limit: int) -> List[Candidate]:
    """Return up to ``limit`` ranked candidates for ``term``."""
    term = term.strip()
    search_words = [w.lower() for w in term.split()]
    if not search_words or limit < 1:
        return []

    records = list(records)
    results: List[Candidate] = []
    seen = set()
    for predicate in _tiers(term, search_words):
        for record in records:
            if record.glyph in seen or not predicate(record):
                continue
            seen.add(record.glyph)
            results.append(record.to_candidate(rank=len(results) + 1))
            if len(results) >= limit:
                return results
    return results


def glyph_key(glyph: str) -> str:
    """Comparison key that ignores the emoji variation selector (U+FE0F)."""
    return glyph.replace("\ufe0f", "")


def first_emoji(text: str) -> str:
    """First emoji grapheme in ``text``; the first character when there is none."""
    text = text.strip()
    found = emoji.emoji_list(text)
    if found:
        return found[0]["emoji"]
    return text[:1]


def find_glyph(records: Iterable[EmojiRecord], text: str) -> Optional[EmojiRecord]:
    """Record for the first emoji in ``text``, tolerating a missing variation selector."""
    glyph = first_emoji(text)
    if not glyph:
        return None
    bare = glyph_key(glyph)
    fallback = None
    for record in records:
        if record.glyph == glyph:
            return record
        if fallback is None and glyph_key(record.glyph) == bare:
            fallback = record
    return fallback
