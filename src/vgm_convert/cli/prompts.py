"""
Interactive prompts

Asks the operator for whatever the command line did not provide: input
folder, album, artist, genre, year and an optional cover image.
"""

from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ..metadata.tagger import check_cover

PROMPT_ORDER = (
    ('input_dir', "Please enter the folder path"),
    ('album', "Please enter the album name"),
    ('artist', "Please enter the artist name"),
    ('genre', "Please enter the genre"),
    ('year', "Please enter the year"),
    ('cover', "Please enter a cover image (if wanted)"),
)


def _ask_folder(console: Console, question: str) -> str:
    while True:
        value = Prompt.ask(question, console=console).strip()
        if value and Path(value).expanduser().is_dir():
            return value
        console.print(f"[bold red]Not a directory:[/] {escape(value) or '(empty)'}")


def _ask_cover(console: Console, question: str) -> str:
    while True:
        value = Prompt.ask(question, default="",
                           show_default=False, console=console).strip()
        if not value:
            return value
        try:
            check_cover(Path(value).expanduser())
        except (OSError, ValueError) as e:
            console.print(f"[bold red]Cannot use cover:[/] {escape(str(e))}")
            continue
        return value


def collect_run_inputs(known: Dict[str, Optional[str]], console: Optional[Console] = None) -> Dict[str, str]:
    """
    Prompt for every missing run input, in a fixed order.

    Args:
        known: Values already supplied (None or missing means "ask")
        console: Console to prompt on

    Returns:
        Mapping with all keys of PROMPT_ORDER; optional answers may be empty
    """
    console = console or Console()
    answers = {}
    for key, question in PROMPT_ORDER:
        if known.get(key) is not None:
            answers[key] = known[key]
        elif key == 'input_dir':
            answers[key] = _ask_folder(console, question)
        elif key == 'cover':
            answers[key] = _ask_cover(console, question)
        else:
            answers[key] = Prompt.ask(question, default="", show_default=False, console=console).strip()
    return answers
