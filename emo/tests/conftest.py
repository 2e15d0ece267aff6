"""Shared fixtures: a small fake dataset and a scripted AI selector."""

from typing import List, Optional, Sequence

import pytest

from emo.config import Config
from emo.dataset import EmojiRecord
from emo.models import Candidate


@pytest.fixture
def records() -> List[EmojiRecord]:
    return [
        EmojiRecord(glyph="📦", name="package", keywords=["box", "deploy", "ship"]),
        EmojiRecord(glyph="🚀", name="rocket", keywords=["launch", "deploy", "space"]),
        EmojiRecord(glyph="🚢", name="ship", keywords=["boat", "deploy"]),
        EmojiRecord(glyph="🔥", name="fire", keywords=["hot", "flame"]),
        EmojiRecord(glyph="🧯", name="fire extinguisher", keywords=["quench"]),
        EmojiRecord(glyph="🚒", name="fire engine", keywords=["truck"]),
        EmojiRecord(glyph="😀", name="grinning face", keywords=["happy", "smile"]),
        EmojiRecord(glyph="\u2764\ufe0f", name="red heart", keywords=["love"],
                    definition="heavy black heart"),
    ]


@pytest.fixture
def config() -> Config:
    return Config()


class FakeSelector:
    """Scripted stand-in for AiEmojiSelector."""

    def __init__(self, script: Sequence[str] = ("🤖", "🧠", "💡", "✨", "🎉"),
                 model_id: str = "llama-3.2-1b"):
        self.script = list(script)
        self.model_id = model_id
        self.prepared_with: List[Optional[str]] = []
        self.sentence_calls: List[int] = []

    def prepare(self, model_id: Optional[str] = None) -> str:
        self.prepared_with.append(model_id)
        return model_id or self.model_id

    def select_distinct(self, text, count, exclusions=()):
        chosen = []
        duplicates = 0
        seen = set(exclusions)
        pool = [g for g in self.script if g not in seen]
        for i in range(count):
            if pool:
                glyph = pool.pop(0)
            else:
                glyph = self.script[0]
                duplicates += 1
            chosen.append(Candidate(glyph=glyph, rank=i + 1, source="ai"))
        return chosen, duplicates

    def select_sentence(self, text, length):
        self.sentence_calls.append(length)
        sentence, _ = self.select_distinct(text, length)
        return sentence


@pytest.fixture
def fake_selector() -> FakeSelector:
    return FakeSelector()


@pytest.fixture
def fake_selector_cls():
    return FakeSelector
