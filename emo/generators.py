"""Emoji generators, one per selection source.

Every generator exposes ``generate(request) -> Selection``. The set is
closed: search, memo, composite (memo first, search backfill), random,
define, AI and AI sentence.
"""

import random
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from .dataset import EmojiRecord, find_glyph, glyph_key, search
from .errors import EmptyQuery, InvalidInput, NoMatchFound
from .models import Candidate, Selection, SelectionRequest


class EmojiSelector(Protocol):
    """What the AI generators need from an AI backend."""

    def select_distinct(self, text: str, count: int,
                        exclusions: Sequence[str] = ()) -> Tuple[List[Candidate], int]:
        ...

    def select_sentence(self, text: str, length: int) -> List[Candidate]:
        ...


class EmojiGenerator(Protocol):
    def generate(self, request: SelectionRequest) -> Selection:
        ...


def _shortfall(found: int, wanted: int) -> str:
    return f"Only {found} of {wanted} requested results found"


def _require_query(request: SelectionRequest) -> str:
    query = request.query.strip()
    if not query:
        raise EmptyQuery()
    return query


class SearchGenerator:
    """Ranked dataset lookup."""

    def __init__(self, records: Sequence[EmojiRecord]):
        self.records = records

    def generate(self, request: SelectionRequest) -> Selection:
        query = _require_query(request)
        results = search(self.records, query, request.count)
        if not results:
            raise NoMatchFound(query)
        selection = Selection(candidates=results)
        if len(results) < request.count:
            selection.notices.append(_shortfall(len(results), request.count))
        return selection


class MemoGenerator:
    """Saved shortcut lookup; an empty selection when there is no memo."""

    def __init__(self, mappings: Dict[str, str]):
        self.mappings = mappings

    def lookup(self, query: str) -> Optional[Candidate]:
        glyph = self.mappings.get(query.strip())
        if glyph is None:
            return None
        return Candidate(glyph=glyph, rank=1, source="memo")

    def generate(self, request: SelectionRequest) -> Selection:
        candidate = self.lookup(_require_query(request))
        return Selection(candidates=[candidate] if candidate else [])


class CompositeGenerator:
    """Memo in slot one, remaining slots backfilled from search.

    Without a memo this is plain search. The memo glyph never reappears in
    the backfill.
    """

    def __init__(self, memo: MemoGenerator, search_gen: SearchGenerator):
        self.memo = memo
        self.search = search_gen

    def generate(self, request: SelectionRequest) -> Selection:
        query = _require_query(request)
        memo = self.memo.lookup(query)
        if memo is None:
            return self.search.generate(request)

        # count - 1 slots to fill; asking for count leaves room to drop the memo glyph
        memo_key = glyph_key(memo.glyph)
        backfill = [
            c for c in search(self.search.records, query, request.count)
            if glyph_key(c.glyph) != memo_key
        ][:request.count - 1]
        candidates = [memo] + backfill
        selection = Selection(candidates=candidates).ranked()
        if len(candidates) < request.count:
            selection.notices.append(_shortfall(len(candidates), request.count))
        logger.debug(f"Composite for {query!r}: memo {memo.glyph} + {len(backfill)} from search")
        return selection


class RandomGenerator:
    """Uniform draws from the whole dataset; repeats allowed."""

    def __init__(self, records: Sequence[EmojiRecord], rng: Optional[random.Random] = None):
        self.records = records
        self.rng = rng or random.Random()

    def generate(self, request: SelectionRequest) -> Selection:
        if not self.records:
            raise InvalidInput("No emojis available")
        picks = [
            self.rng.choice(self.records).to_candidate(rank=i, source="random")
            for i in range(1, request.count + 1)
        ]
        return Selection(candidates=picks)


class DefineGenerator:
    """Exactly one emoji with its record: the emoji given, or the first search hit."""

    def __init__(self, records: Sequence[EmojiRecord]):
        self.records = records

    def generate(self, request: SelectionRequest) -> Selection:
        query = _require_query(request)
        record = find_glyph(self.records, query)
        if record is not None:
            return Selection(candidates=[record.to_candidate(rank=1)])
        results = search(self.records, query, 1)
        if not results:
            raise NoMatchFound(query)
        return Selection(candidates=results)


class AiGenerator:
    """``count`` distinct emojis chosen by the model."""

    def __init__(self, selector: EmojiSelector):
        self.selector = selector

    def generate(self, request: SelectionRequest) -> Selection:
        query = _require_query(request)
        candidates, duplicates = self.selector.select_distinct(query, request.count)
        selection = Selection(candidates=candidates)
        if duplicates:
            selection.notices.append(
                f"Model ran out of distinct emojis: {duplicates} duplicate(s) in {request.count} results"
            )
        return selection


class AiSentenceGenerator:
    """``count`` independent emoji sentences of ``sentence_length`` each."""

    def __init__(self, selector: EmojiSelector):
        self.selector = selector

    def generate(self, request: SelectionRequest) -> Selection:
        query = _require_query(request)
        sentences = [
            self.selector.select_sentence(query, request.sentence_length)
            for _ in range(request.count)
        ]
        flat = [c for sentence in sentences for c in sentence]
        return Selection(candidates=flat, sentences=sentences)
