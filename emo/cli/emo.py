#!/usr/bin/env python3
"""
Main CLI for emo - find emojis from the terminal.

Usage:
    emo fire                 - best match for "fire"
    emo -c 3 happy           - three matches
    emo -m 🚀 deploy         - save a memo (or -m 2 to save the 2nd result)
    emo -e deploy            - erase a memo
    emo -l                   - list memos
    emo -d 🔥                - define an emoji
    emo -r                   - random emoji
    emo --ai "monday morning"        - let a local model choose
    emo --ai -s 5 "monday morning"   - five-emoji sentence
    emo --list-models        - models available for --model
"""

import os
import sys
from typing import List, Optional, Tuple

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..ai import AiEmojiSelector, ModelRegistry
from ..config import AiSettings, Config
from ..dataset import load_emojis
from ..errors import EmoError, EmptyQuery
from ..memo import erase_memo, list_memos, save_memo
from ..models import Candidate, Selection, SelectionMode, SelectionRequest
from ..resolver import SelectionResolver

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.environ.get("EMO_LOG_LEVEL", "WARNING").upper()
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)


def make_selector() -> AiEmojiSelector:
    return AiEmojiSelector(AiSettings.from_env(), console=err_console)


def make_registry() -> ModelRegistry:
    return ModelRegistry(AiSettings.from_env())


def echo(line: str) -> None:
    """Print plain text: no markup, emoji codes or highlighting."""
    console.print(line, markup=False, emoji=False, highlight=False)


def _prefix(i: int, show_number: bool) -> str:
    return f"{i}. " if show_number else ""


def describe(candidate: Candidate, with_definition: bool = False) -> str:
    record = candidate.record
    if record is None:
        return candidate.glyph
    text = f"{candidate.glyph} - {record.name}"
    if with_definition and record.definition:
        text = f"{text} {record.definition}"
    return text


def display_selection(selection: Selection, mode: SelectionMode, show_number: bool) -> None:
    if selection.sentences:
        for i, sentence in enumerate(selection.sentences, 1):
            echo(_prefix(i, show_number) + "".join(c.glyph for c in sentence))
    elif mode is SelectionMode.DEFINE:
        echo(describe(selection.candidates[0], with_definition=True))
    else:
        for i, candidate in enumerate(selection.candidates, 1):
            text = describe(candidate) if mode is SelectionMode.RANDOM else candidate.glyph
            echo(_prefix(i, show_number) + text)

    for notice in selection.notices:
        err_console.print(f"[yellow]{escape(notice)}[/yellow]")


def display_mappings(mappings: List[Tuple[str, str]]) -> None:
    if not mappings:
        echo("No saved mappings.")
        return
    echo("Saved mappings:")
    for term, glyph in mappings:
        echo(f"  {term} → {glyph}")


def display_models() -> None:
    models = make_registry().fetch_models()
    echo("Available models:")
    echo("")
    width = max((len(m.id) for m in models), default=10)
    for m in models:
        echo(f"  {m.id:<{width}}  {m.name}  {m.description}")
    echo("")
    echo("To use a model, set it in your config file or use --model <id>")


def pick_mode(ai: bool, model: Optional[str], sentence: Optional[int],
              random_: bool, define: bool) -> SelectionMode:
    if ai or model:
        return SelectionMode.AI_SENTENCE if sentence else SelectionMode.AI
    if random_:
        return SelectionMode.RANDOM
    if define:
        return SelectionMode.DEFINE
    return SelectionMode.SEARCH


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", prog_name="emo")
@click.argument("search_terms", nargs=-1)
@click.option("--count", "-c", default=1, show_default=True, type=click.IntRange(min=1),
              help="number of results to show")
@click.option("--define", "-d", is_flag=True, help="define the specified emoji")
@click.option("--memo", "-m", "save", metavar="EMOJI|INDEX",
              help="save a mapping for the search term to a specific emoji or index")
@click.option("--erase", "-e", is_flag=True, help="erase the mapping for the specified search term")
@click.option("--number", "-n", is_flag=True, help="display the number of a given emoji result")
@click.option("--list-mappings", "-l", is_flag=True, help="list all saved mappings")
@click.option("--random", "-r", "random_", is_flag=True, help="get a random emoji")
@click.option("--ai", is_flag=True, help="use AI to select the best emoji for your situation")
@click.option("--model", metavar="NAME", help="specify the AI model to use")
@click.option("--list-models", is_flag=True, help="list available AI models")
@click.option("--sentence", "-s", type=click.IntRange(min=1), metavar="N",
              help="length of each emoji sentence (use with -c for multiple sentences)")
@click.option("--verbose", "-v", is_flag=True, help="debug logging on stderr")
def cli(search_terms, count, define, save, erase, number, list_mappings,
        random_, ai, model, list_models, sentence, verbose):
    """CLI for finding emojis."""
    configure_logging(verbose)
    try:
        run(
            query=" ".join(search_terms).strip(),
            count=count,
            define=define,
            save=save,
            erase=erase,
            show_number=number,
            list_mappings=list_mappings,
            random_=random_,
            ai=ai,
            model=model,
            list_models=list_models,
            sentence=sentence,
        )
    except EmoError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(e.exit_code)


def run(query: str, count: int = 1, define: bool = False, save: Optional[str] = None,
        erase: bool = False, show_number: bool = False, list_mappings: bool = False,
        random_: bool = False, ai: bool = False, model: Optional[str] = None,
        list_models: bool = False, sentence: Optional[int] = None) -> None:
    """Dispatch one invocation. Raises ``EmoError`` on failure."""
    if list_models:
        display_models()
        return

    config = Config.load()
    if list_mappings:
        display_mappings(list_memos(config))
        return

    changed = False
    if model:
        config.model = model
        changed = True
        if not query:
            config.save()
            echo(f"AI model set to {model} ✅")
            return

    mode = pick_mode(ai, model, sentence, random_, define)
    ai_mode = mode in (SelectionMode.AI, SelectionMode.AI_SENTENCE)

    if not query and mode is not SelectionMode.RANDOM:
        raise EmptyQuery()

    if not ai_mode and mode is not SelectionMode.RANDOM:
        if erase:
            erase_memo(config, query)
            config.save()
            echo(f"Mapping for '{query}' erased ✅")
            return
        if save is not None:
            glyph = save_memo(config, query, save, load_emojis())
            config.save()
            echo(f"{query} ➡ {glyph} ✅")
            return

    request = SelectionRequest(
        mode=mode,
        query=query,
        count=count,
        sentence_length=sentence if mode is SelectionMode.AI_SENTENCE else None,
    )
    resolver = SelectionResolver(config, load_emojis(), selector_factory=make_selector)
    selection = resolver.resolve(request)
    display_selection(selection, mode, show_number)

    if changed or resolver.config_changed:
        config.save()


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
