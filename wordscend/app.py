"""Terminal entry point for the Wordscend daily word ladder."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from wordscend.core.attempt import AttemptState, Rejection
from wordscend.core.evaluator import Mark
from wordscend.core.game import DailyGame, TurnOutcome
from wordscend.core.ledger import OutcomeKind
from wordscend.core.levels import GameConfig, LevelRepository, load_config, load_words
from wordscend.core.oracle import BloomOracle, MembershipOracle, WordSetOracle
from wordscend.core.progress import LedgerStore
from wordscend.core.streak import today_key

app = typer.Typer(help="Daily word ladder: one puzzle per word length, six tries each.")
console = Console()

TILE_STYLES: Dict[Mark, str] = {
    Mark.CORRECT: "bold white on green4",
    Mark.PRESENT: "bold black on gold3",
    Mark.ABSENT: "white on grey35",
    Mark.UNSET: "bold",
}

REJECTION_MESSAGES: Dict[Rejection, str] = {
    Rejection.INCOMPLETE: "Not enough letters",
    Rejection.NOT_ALLOWED: "Not in word list",
    Rejection.ALREADY_DONE: "Puzzle finished",
}

KEYBOARD_ROWS = ("QWERTYUIOP", "ASDFGHJKL", "ZXCVBNM")

ConfigOption = typer.Option(None, "--config", help="Game config YAML.")
WordsOption = typer.Option(None, "--words", help="Word list, one word per line.")
LedgerOption = typer.Option(None, "--ledger", help="Ledger JSON file (default ~/.wordscend/ledger.json).")


def configure_logging(verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _store(config: GameConfig, ledger: Optional[Path]) -> LedgerStore:
    return LedgerStore(config.level_lengths, config.milestones, file_path=ledger)


def _oracle(words: list[str], bloom: Optional[Path]) -> MembershipOracle:
    if bloom is None:
        return WordSetOracle(words)
    return BloomOracle.load(bloom, bloom.with_suffix(".json"))


def render_board(state: AttemptState) -> Text:
    text = Text()
    for r in range(state.rows):
        for c in range(state.cols):
            letter = state.board[r][c] or "·"
            text.append(f" {letter} ", style=TILE_STYLES[state.row_marks[r][c]])
            text.append(" ")
        text.append("\n")
    return text


def render_keyboard(state: AttemptState) -> Text:
    text = Text()
    for row in KEYBOARD_ROWS:
        for ch in row:
            style = TILE_STYLES[state.key_status.get(ch, Mark.UNSET)]
            text.append(f" {ch} ", style=style if ch in state.key_status else "dim")
        text.append("\n")
    return text


def _enter_guess(game: DailyGame, guess: str) -> None:
    while game.backspace():
        pass
    for ch in guess:
        if not game.add_letter(ch):
            break


def _report(outcome: TurnOutcome) -> None:
    streak = outcome.streak
    if streak is not None and streak.changed:
        if streak.used_freeze:
            console.print("[cyan]A streak freeze covered yesterday.[/cyan]")
        if streak.earned_freeze:
            console.print("[cyan]Streak freeze earned![/cyan]")
        if streak.earned_hint:
            console.print("[cyan]Hint earned![/cyan]")
        if streak.milestone:
            console.print(f"[magenta]{streak.milestone}-day streak![/magenta]")
        elif streak.new_best:
            console.print("[magenta]New best streak![/magenta]")
        elif streak.show_toast:
            console.print("[magenta]Streak extended.[/magenta]")

    level = outcome.level
    if level is None:
        return
    if level.kind is OutcomeKind.RETRY:
        console.print("[red]Out of tries. Try again.[/red]")
    else:
        console.print(f"[green]+{level.bonus} pts[/green]")


def _hud(game: DailyGame, cfg: GameConfig) -> str:
    ledger = game.ledger
    return (
        f"Level {ledger.level_index + 1}/{cfg.level_count}  "
        f"Score {ledger.score}  Streak {ledger.streak.current}  Hints {ledger.streak.hints_available}"
    )


@app.command()
def play(
    config: Optional[Path] = ConfigOption,
    words: Optional[Path] = WordsOption,
    ledger: Optional[Path] = LedgerOption,
    bloom: Optional[Path] = typer.Option(None, "--bloom", help="Bloom filter .bin (metadata in matching .json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Play today's puzzles. Type a word to guess, '?' for a hint, '!q' to quit."""
    configure_logging(verbose)
    cfg = load_config(config)
    word_list = load_words(words)
    game = DailyGame(LevelRepository(cfg, word_list), _oracle(word_list, bloom), _store(cfg, ledger))
    game.start()

    try:
        while game.summary is None:
            console.print(_hud(game, cfg))
            console.print(render_board(game.state))
            console.print(render_keyboard(game.state))
            try:
                line = typer.prompt("Guess", default="", show_default=False).strip()
            except typer.Abort:
                break
            if line == "!q":
                break
            if line == "?":
                hint = game.use_hint()
                if hint.ok:
                    console.print(f"Letter {hint.position + 1} is [bold]{hint.letter}[/bold] (-{hint.penalty} pts)")
                else:
                    console.print("[yellow]No hint available[/yellow]")
                continue
            if not line:
                continue
            if len(line) != game.level_length:
                console.print(f"[yellow]Enter a {game.level_length}-letter word[/yellow]")
                continue

            _enter_guess(game, line)
            outcome = game.submit()
            if not outcome.result.ok:
                console.print(f"[yellow]{REJECTION_MESSAGES[outcome.result.reason]}[/yellow]")
                continue
            _report(outcome)
            if outcome.result.done:
                console.print(render_board(game.state))
                if not outcome.result.win:
                    console.print(f"The word was [bold]{game.state.answer}[/bold]")
                time.sleep(cfg.advance_delay)
                game.advance(force=True)
    finally:
        game.close()

    summary = game.summary
    if summary is not None:
        console.print(
            f"[bold]Daily run complete![/bold] Score {summary.score}. "
            f"Streak {summary.streak_current} (best {summary.streak_best})."
        )


@app.command()
def status(
    config: Optional[Path] = ConfigOption,
    ledger: Optional[Path] = LedgerOption,
) -> None:
    """Show today's run and the streak bank."""
    cfg = load_config(config)
    record = _store(cfg, ledger).load(today_key())
    streak = record.streak

    table = Table(title=f"Wordscend {record.day}")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Level", f"{record.level_index + 1}/{cfg.level_count}")
    table.add_row("Score", str(record.score))
    table.add_row("Streak", str(streak.current))
    table.add_row("Best streak", str(streak.best))
    table.add_row("Freezes", str(streak.available_freezes))
    table.add_row("Hints", str(streak.hints_available))
    table.add_row("Last played", streak.last_play_day or "never")
    console.print(table)


@app.command()
def reset(
    config: Optional[Path] = ConfigOption,
    ledger: Optional[Path] = LedgerOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Erase all progress, including the streak."""
    if not yes:
        typer.confirm("Erase all progress and streaks?", abort=True)
    cfg = load_config(config)
    store = _store(cfg, ledger)
    store.reset(today_key())
    console.print(f"Progress cleared ({store.file_path})")


@app.command("build-bloom")
def build_bloom(
    words: Path = typer.Argument(..., help="Word list, one word per line."),
    out: Path = typer.Argument(..., help="Output .bin path; metadata goes to the matching .json."),
    rate: float = typer.Option(0.01, "--rate", help="Target false-positive rate."),
) -> None:
    """Build a Bloom filter usable with 'play --bloom'."""
    if not 0 < rate < 1:
        raise typer.BadParameter("rate must be between 0 and 1", param_hint="--rate")
    oracle = BloomOracle.from_words(load_words(words), rate)
    oracle.save(out, out.with_suffix(".json"))
    console.print(f"Wrote {out} (m={oracle.m}, k={oracle.k})")


def run() -> None:
    app()
