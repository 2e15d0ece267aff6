"""Selection resolver: pick a generator for a request and run it.

Precedence: AI (and AI sentence) > random > define > memo/search composite.
AI mode never looks at memos. When AI is requested with no model configured
the selector prepares one and the chosen id is written into the config.
"""

import random
from typing import Callable, Optional, Sequence

from loguru import logger

from .config import Config
from .dataset import EmojiRecord
from .generators import (
    AiGenerator,
    AiSentenceGenerator,
    CompositeGenerator,
    DefineGenerator,
    EmojiGenerator,
    MemoGenerator,
    RandomGenerator,
    SearchGenerator,
)
from .errors import EmptyQuery
from .models import Selection, SelectionMode, SelectionRequest


class SelectionResolver:
    """Maps one ``SelectionRequest`` to a ``Selection``.

    ``selector_factory`` is only called for AI modes, so plain lookups never
    touch the network.
    """

    def __init__(
        self,
        config: Config,
        records: Sequence[EmojiRecord],
        selector_factory: Optional[Callable[[], object]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.records = records
        self.selector_factory = selector_factory
        self.rng = rng
        self.config_changed = False
        self._selector = None

    @property
    def selector(self):
        if self._selector is None:
            if self.selector_factory is None:
                from .ai import AiEmojiSelector
                self._selector = AiEmojiSelector()
            else:
                self._selector = self.selector_factory()
        return self._selector

    def _prepare_ai(self) -> None:
        model_id = self.selector.prepare(self.config.model)
        if self.config.model is None and model_id:
            logger.info(f"Configured AI model: {model_id}")
            self.config.model = model_id
            self.config_changed = True

    def generator_for(self, request: SelectionRequest) -> EmojiGenerator:
        mode = request.mode
        if mode is SelectionMode.AI:
            self._prepare_ai()
            return AiGenerator(self.selector)
        if mode is SelectionMode.AI_SENTENCE:
            self._prepare_ai()
            return AiSentenceGenerator(self.selector)
        if mode is SelectionMode.RANDOM:
            return RandomGenerator(self.records, self.rng)
        if mode is SelectionMode.DEFINE:
            return DefineGenerator(self.records)
        return CompositeGenerator(MemoGenerator(self.config.mappings), SearchGenerator(self.records))

    def resolve(self, request: SelectionRequest) -> Selection:
        logger.debug(f"Resolving {request}")
        if request.mode is not SelectionMode.RANDOM and not request.query.strip():
            raise EmptyQuery()
        generator = self.generator_for(request)
        return generator.generate(request)
