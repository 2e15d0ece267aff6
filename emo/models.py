"""Value types shared by the selection pipeline."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .dataset import EmojiRecord


class SelectionMode(Enum):
    """Exactly one mode is active per invocation."""
    SEARCH = "search"
    AI = "ai"
    AI_SENTENCE = "ai-sentence"
    RANDOM = "random"
    DEFINE = "define"


@dataclass(frozen=True)
class Candidate:
    """One emoji produced by any selection source."""
    glyph: str
    rank: Optional[int] = None
    record: Optional["EmojiRecord"] = field(default=None, compare=False, repr=False)
    source: str = "search"  # search|memo|ai|random


@dataclass(frozen=True)
class SelectionRequest:
    """Resolved flags for one invocation."""
    mode: SelectionMode
    query: str = ""
    count: int = 1
    sentence_length: Optional[int] = None

    def __post_init__(self):
        if self.count < 1:
            raise ValueError("count must be at least 1")
        if self.mode is SelectionMode.AI_SENTENCE and not self.sentence_length:
            raise ValueError("sentence mode requires a sentence length")


@dataclass
class Selection:
    """What a generator hands back to the CLI."""
    candidates: List[Candidate] = field(default_factory=list)
    sentences: List[List[Candidate]] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)

    @property
    def glyphs(self) -> List[str]:
        return [c.glyph for c in self.candidates]

    def ranked(self) -> "Selection":
        """Return a copy with 1-based ranks assigned in order."""
        ranked = [
            Candidate(glyph=c.glyph, rank=i, record=c.record, source=c.source)
            for i, c in enumerate(self.candidates, 1)
        ]
        return Selection(candidates=ranked, sentences=self.sentences, notices=list(self.notices))


_ID_SKIP = {"gguf", "q4", "k", "m"}


@dataclass
class ModelInfo:
    """A downloadable model as listed by the registry."""
    id: str
    name: str
    repo: str
    filename: str
    size_mb: int
    description: str
    quant: str = "Q4_K_M"

    @property
    def ollama_ref(self) -> str:
        return f"hf.co/{self.repo}:{self.quant}"

    @property
    def url(self) -> str:
        return f"https://huggingface.co/{self.repo}/resolve/main/{self.filename}"

    @staticmethod
    def id_from_repo(repo: str) -> str:
        """Short id from a repo name, e.g. ``Llama-3.2-1B-Instruct-GGUF`` -> ``llama-3.2-1b``."""
        repo_name = repo.split("/")[-1]
        parts = [p for p in re.split(r"[-_]", repo_name) if p and p.lower() not in _ID_SKIP]
        return "-".join(parts[:3]).lower()

    @staticmethod
    def display_name(repo: str) -> str:
        repo_name = repo.split("/")[-1]
        return repo_name.replace("-GGUF", "").replace("-Q4_K_M", "").replace("_", " ")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "repo": self.repo,
            "filename": self.filename,
            "size_mb": self.size_mb,
            "description": self.description,
            "quant": self.quant,
        }
