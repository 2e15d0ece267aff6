"""AI emoji selection backed by a local Ollama server.

Models are listed from the Hugging Face API (small Q4_K_M GGUF builds) and
pulled into Ollama by reference (``hf.co/<repo>:Q4_K_M``). The resolved
model info is cached under ``<config>/emo/models/<id>.json`` so later runs
skip the registry lookup.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import emoji
import httpx
from loguru import logger
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .config import AiSettings, models_dir
from .dataset import glyph_key
from .errors import InvalidInput, ModelUnavailable, NoMatchFound
from .models import Candidate, ModelInfo

REGISTRY_SEARCH = "GGUF Q4_K_M"
REGISTRY_LIMIT = 10
REGISTRY_INSPECT = 6

EMOJI_RANGES = (
    (0x1F300, 0x1F9FF),  # emoticons, pictographs
    (0x2600, 0x26FF),    # misc symbols
    (0x2700, 0x27BF),    # dingbats
    (0x1F000, 0x1F02F),  # mahjong, domino
    (0x1FA70, 0x1FAFF),  # symbols and pictographs ext-A
)


def is_emoji_char(ch: str) -> bool:
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in EMOJI_RANGES)


def extract_emojis(text: str) -> List[str]:
    """Emoji graphemes in generation output, in order."""
    found = [e["emoji"] for e in emoji.emoji_list(text)]
    if found:
        return found
    return [ch for ch in text if is_emoji_char(ch)]


def build_prompt(text: str, exclusions: Sequence[str] = ()) -> str:
    if not exclusions:
        return (
            f"Task: Select ONE emoji that best represents: {text}. "
            "Reply with only the emoji, nothing else.\nEmoji:"
        )
    return (
        f"Task: Select ONE emoji that best represents: {text}. "
        f"Do not use: {', '.join(exclusions)}. Reply with only the emoji.\nEmoji:"
    )


def _size_label(size_mb: int) -> str:
    if size_mb < 1000:
        return f"{size_mb}MB"
    return f"{size_mb / 1000:.1f}GB"


class ModelRegistry:
    """Lists downloadable models from the Hugging Face API."""

    def __init__(self, settings: Optional[AiSettings] = None,
                 client: Optional[httpx.Client] = None):
        self.settings = settings or AiSettings()
        self._client = client or httpx.Client(timeout=10.0, follow_redirects=True)

    def fetch_models(self) -> List[ModelInfo]:
        base = self.settings.registry_url
        try:
            response = self._client.get(
                f"{base}/api/models",
                params={"search": REGISTRY_SEARCH, "limit": REGISTRY_LIMIT, "sort": "downloads"},
            )
            response.raise_for_status()
            listing = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ModelUnavailable(f"Failed to fetch model list: {e}") from e

        if not listing:
            raise ModelUnavailable("No models found on the registry")

        models = []
        for entry in listing[:REGISTRY_INSPECT]:
            repo = entry.get("modelId") or entry.get("id")
            if not repo:
                continue
            info = self._inspect(repo)
            if info is not None:
                models.append(info)

        if not models:
            raise ModelUnavailable("No compatible GGUF models found")
        logger.debug(f"Registry returned {len(models)} models")
        return models

    def _inspect(self, repo: str) -> Optional[ModelInfo]:
        try:
            response = self._client.get(f"{self.settings.registry_url}/api/models/{repo}/tree/main")
            response.raise_for_status()
            files = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Skipping {repo}: {e}")
            return None

        for f in files:
            path = f.get("path", "")
            if "q4_k_m" in path.lower() and path.endswith(".gguf"):
                size_mb = int(f.get("size", 0) // 1_000_000)
                owner = repo.split("/")[0] if "/" in repo else "unknown"
                return ModelInfo(
                    id=ModelInfo.id_from_repo(repo),
                    name=ModelInfo.display_name(repo),
                    repo=repo,
                    filename=path,
                    size_mb=size_mb,
                    description=f"Q4_K_M • {_size_label(size_mb)} • by {owner}",
                )
        return None


class ModelCache:
    """Per-model manifests keyed by model id."""

    def __init__(self, root: Optional[Path] = None):
        self.root = root or models_dir()

    def path_for(self, model_id: str) -> Path:
        safe = model_id.replace("/", "__").replace(":", "_")
        return self.root / f"{safe}.json"

    def get(self, model_id: str) -> Optional[ModelInfo]:
        path = self.path_for(model_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return ModelInfo(**json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable model manifest {path}: {e}")
            return None

    def put(self, info: ModelInfo) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(self.path_for(info.id), "w", encoding="utf-8") as f:
                json.dump(info.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ModelUnavailable(f"Cannot write model cache: {e}") from e


class OllamaClient:
    """Thin wrapper over the Ollama HTTP API."""

    def __init__(self, settings: AiSettings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = client or httpx.Client(timeout=settings.timeout)

    @property
    def base_url(self) -> str:
        return self.settings.ollama_url

    def _unreachable(self, e: Exception) -> ModelUnavailable:
        return ModelUnavailable(
            f"Cannot connect to Ollama at {self.base_url}. Is it running? ({e})"
        )

    def list_local(self) -> List[str]:
        try:
            response = self._client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
            return [m.get("name", "") for m in response.json().get("models", [])]
        except httpx.ConnectError as e:
            raise self._unreachable(e) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ModelUnavailable(f"Failed to list local models: {e}") from e

    def pull(self, ref: str, progress: Optional[Progress] = None) -> None:
        task = progress.add_task(f"Pulling {ref}", total=None) if progress else None
        try:
            with self._client.stream(
                "POST", f"{self.base_url}/api/pull",
                json={"model": ref, "stream": True}, timeout=None,
            ) as response:
                response.raise_for_status()
                for line in response.iter_lines():
                    if not line:
                        continue
                    status = json.loads(line)
                    if "error" in status:
                        raise ModelUnavailable(f"Failed to pull {ref}: {status['error']}")
                    if progress is not None and status.get("total"):
                        progress.update(task, total=status["total"],
                                        completed=status.get("completed", 0),
                                        description=status.get("status", ref))
                    if status.get("status") == "success":
                        return
        except httpx.ConnectError as e:
            raise self._unreachable(e) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ModelUnavailable(f"Failed to pull {ref}: {e}") from e
        raise ModelUnavailable(f"Pull of {ref} ended without success")

    def generate(self, model: str, prompt: str, seed: int) -> str:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.settings.temperature,
                "seed": seed,
                "num_predict": self.settings.max_tokens,
            },
        }
        try:
            response = self._client.post(f"{self.base_url}/api/generate", json=payload)
            response.raise_for_status()
            return response.json().get("response", "")
        except httpx.ConnectError as e:
            raise self._unreachable(e) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ModelUnavailable(f"Generation failed: {e}") from e


def _is_installed(ref: str, installed: Iterable[str]) -> bool:
    installed = set(installed)
    if ref in installed:
        return True
    return ":" not in ref.split("/")[-1] and f"{ref}:latest" in installed


class AiEmojiSelector:
    """Picks emojis for free text with a local language model."""

    def __init__(
        self,
        settings: Optional[AiSettings] = None,
        ollama: Optional[OllamaClient] = None,
        registry: Optional[ModelRegistry] = None,
        cache: Optional[ModelCache] = None,
        console: Optional[Console] = None,
    ):
        self.settings = settings or AiSettings()
        self.ollama = ollama or OllamaClient(self.settings)
        self.registry = registry or ModelRegistry(self.settings)
        self.cache = cache or ModelCache()
        self.console = console or Console(stderr=True)
        self.model_ref: Optional[str] = None

    def prepare(self, model_id: Optional[str] = None) -> str:
        """Make sure a model is available, pulling it once if needed.

        Returns the model id that should be recorded in the configuration.
        """
        installed = self.ollama.list_local()

        info = self.cache.get(model_id) if model_id else None
        if info is not None:
            ref = info.ollama_ref
        elif model_id and _is_installed(model_id, installed):
            ref = model_id
        else:
            info = self._lookup(model_id)
            ref = info.ollama_ref if info is not None else model_id

        if not _is_installed(ref, installed):
            label = info.name if info is not None else ref
            self.console.print(f"📥 Downloading {label} model ({ref})...")
            self.console.print("This is a one-time download for AI-powered emoji selection.")
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TimeRemainingColumn(),
                console=self.console,
                transient=True,
            ) as progress:
                self.ollama.pull(ref, progress)
            self.console.print("[green]✅ Model downloaded successfully![/green]")

        if info is not None:
            self.cache.put(info)
        self.model_ref = ref
        logger.debug(f"Using model {ref}")
        return info.id if info is not None else model_id

    def _lookup(self, model_id: Optional[str]) -> Optional[ModelInfo]:
        if model_id is None:
            return self.registry.fetch_models()[0]
        try:
            models = self.registry.fetch_models()
        except ModelUnavailable as e:
            logger.warning(f"Registry unavailable, treating '{model_id}' as an Ollama model name: {e}")
            return None
        for m in models:
            if m.id == model_id:
                return m
        return None

    def _require_model(self) -> str:
        if self.model_ref is None:
            raise ModelUnavailable("No AI model prepared")
        return self.model_ref

    def select(self, text: str, exclusions: Sequence[str] = (), attempt: int = 0) -> Candidate:
        """One emoji for ``text``, preferring glyphs not in ``exclusions``."""
        model = self._require_model()
        prompt = build_prompt(text, exclusions)
        output = self.ollama.generate(model, prompt, seed=self.settings.seed + attempt)
        found = extract_emojis(output)
        if not found:
            raise NoMatchFound(text, detail=f"model replied '{output.strip()}'")

        excluded = {glyph_key(g) for g in exclusions}
        for glyph in found:
            if glyph_key(glyph) not in excluded:
                return Candidate(glyph=glyph, source="ai")
        return Candidate(glyph=found[0], source="ai")

    def select_distinct(
        self, text: str, count: int, exclusions: Sequence[str] = ()
    ) -> Tuple[List[Candidate], int]:
        """``count`` emojis with no repeats where the model allows it.

        Returns the candidates and how many duplicates had to be kept.
        """
        chosen: List[Candidate] = []
        excluded = list(exclusions)
        duplicates = 0
        for _ in range(count):
            keys = {glyph_key(g) for g in excluded}
            for attempt in range(self.settings.max_attempts):
                candidate = self.select(text, excluded, attempt)
                if glyph_key(candidate.glyph) not in keys:
                    break
            else:
                duplicates += 1
                logger.debug(f"Model repeated {candidate.glyph} after {self.settings.max_attempts} attempts")
            chosen.append(Candidate(glyph=candidate.glyph, rank=len(chosen) + 1, source="ai"))
            excluded.append(candidate.glyph)
        return chosen, duplicates

    def select_sentence(self, text: str, length: int) -> List[Candidate]:
        if length < 1:
            raise InvalidInput("Sentence length must be at least 1")
        sentence, _ = self.select_distinct(text, length)
        return sentence
