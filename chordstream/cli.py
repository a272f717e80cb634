"""Command-line interface for chordstream.

Provides commands for:
- analyze: Run the chord pipeline over an audio file
- classify: Map frequencies to notes
- match: Name the chord behind a set of notes
- vocabulary: List the chord table
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="chordstream",
    help="Real-time chord recognition from audio spectra",
    rich_markup_mode="markdown",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, OGG)"),
    front_end: str = typer.Option(
        "peak", "--front-end", "-f", help="Pitch front end: peak/chroma"
    ),
    sampling: str = typer.Option(
        "every-frame", "--sampling", help="When to match: every-frame/fixed/onset"
    ),
    sensitivity: str = typer.Option(
        "medium", "--sensitivity", "-s", help="Peak sensitivity: low/medium/high/studio"
    ),
    multi_band: bool = typer.Option(
        False, "--multi-band", "-m", help="Match bass/mid/treble bands separately"
    ),
    raw: bool = typer.Option(
        False, "--raw", help="Report every match without temporal stabilization"
    ),
    change_gate: bool = typer.Option(
        False, "--change-gate", help="Skip matching while the chroma is steady"
    ),
    fft_size: int = typer.Option(2048, "--fft-size", help="FFT window size"),
    frame_rate: float = typer.Option(60.0, "--frame-rate", help="Frames per second"),
    start: float = typer.Option(0.0, "--start", help="Start of the excerpt in seconds"),
    length: Optional[float] = typer.Option(
        None, "--length", help="Length of the excerpt in seconds (default: to the end)"
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write events as JSON to this file"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Detect chords in an audio file, frame by frame.

    **Examples:**

        chordstream analyze song.wav

        chordstream analyze song.wav -f chroma --sampling onset --json
    """
    from .input import AudioLoader, SpectrumFramer
    from .analysis import FrontEnd, SamplingMode
    from .pipeline import ChordPipeline, PipelineConfig
    from .output import ChordHistory, EventExporter, chord_timeline, event_to_dict

    _setup_logging(verbose)

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    try:
        config = PipelineConfig.from_sensitivity(
            sensitivity,
            front_end=FrontEnd(front_end.lower()),
            stabilize=not raw,
            use_change_gate=change_gate,
            multi_band=multi_band,
        )
        config.gate.mode = SamplingMode(sampling.lower())
        framer = SpectrumFramer(n_fft=fft_size, frame_rate=frame_rate)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"[blue]Loading audio:[/blue] {input_file}")

    loader = AudioLoader()
    try:
        audio, sr = loader.load(str(input_file), offset=start, duration=length)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    duration = loader.duration(audio, sr)

    if not json_output:
        console.print(
            f"  Duration: {duration:.2f}s, Sample rate: {sr}Hz, "
            f"front end: {config.front_end.value}, sampling: {config.gate.mode.value}"
        )

    pipeline = ChordPipeline(config)
    history = ChordHistory()
    started = time.time()
    events, frame_count = _run_pipeline(pipeline, framer.frames(audio, sr), history)
    elapsed = time.time() - started

    if output is not None:
        EventExporter().export(events, str(output), source=str(input_file))

    if json_output:
        console.print_json(data={
            "input": str(input_file),
            "duration": duration,
            "frames": frame_count,
            "bpm": pipeline.gate.bpm,
            "events": [event_to_dict(e) for e in events],
            "timeline": chord_timeline(events),
        })
        return

    console.print(
        f"  Processed {frame_count} frames in {elapsed:.2f}s "
        f"({frame_count / max(elapsed, 1e-9):.0f} frames/s)"
    )
    if not events:
        console.print("[yellow]No chords detected[/yellow]")
        return

    _show_timeline_table(chord_timeline(events))
    console.print(f"[bold]History:[/bold] {history.render()}")
    if output is not None:
        console.print(f"[green]Events written to:[/green] {output}")


@app.command()
def classify(
    frequencies: List[float] = typer.Argument(..., help="Frequencies in Hz"),
):
    """Map frequencies to equal-tempered notes (A4 = 440 Hz)."""
    from .analysis import PitchClassifier
    from .core import note_number

    classifier = PitchClassifier()
    table = Table(title="Notes")
    table.add_column("Frequency", style="yellow")
    table.add_column("Note", style="cyan")
    table.add_column("Cents", style="magenta")

    for freq in frequencies:
        try:
            note = classifier.classify(freq)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        number = note_number(freq)
        cents = (number - round(number)) * 100
        table.add_row(f"{freq:.2f} Hz", note.name, f"{cents:+.0f}")

    console.print(table)


@app.command()
def match(
    notes: List[str] = typer.Argument(..., help="Pitch classes, e.g. C E G or C Eb G"),
    no_partial: bool = typer.Option(
        False, "--no-partial", help="Disable partial set matching"
    ),
    top: int = typer.Option(5, "--top", help="Ranked candidates to show"),
):
    """Name the chord formed by a set of pitch classes."""
    from .inference import ChordMatcher, MatcherConfig

    matcher = ChordMatcher(MatcherConfig(enable_partial_match=not no_partial))
    try:
        result = matcher.match(notes)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if result.best is None:
        console.print("[yellow]Not enough distinct notes for a chord[/yellow]")
        raise typer.Exit(1)

    best = result.best
    console.print(
        f"[bold cyan]{best.name}[/bold cyan] "
        f"(confidence {best.confidence:.2f}, {best.strategy})"
    )

    table = Table(title="Candidates")
    table.add_column("Chord", style="cyan")
    table.add_column("Tones", style="green")
    table.add_column("Strategy", style="yellow")
    table.add_column("Confidence", style="magenta")
    ranked = sorted(result.ranked, key=lambda c: c.confidence, reverse=True)
    for candidate in ranked[:top]:
        table.add_row(
            candidate.name,
            " ".join(candidate.chord_tones),
            candidate.strategy,
            f"{candidate.confidence:.2f}",
        )
    console.print(table)


@app.command()
def vocabulary():
    """List the chord vocabulary."""
    from .inference import CHORD_QUALITIES

    table = Table(title="Chord Vocabulary")
    table.add_column("Quality", style="cyan")
    table.add_column("Symbol", style="green")
    table.add_column("Intervals", style="yellow")
    table.add_column("Pattern", style="magenta")
    table.add_column("Exact", style="magenta")

    for quality in CHORD_QUALITIES:
        table.add_row(
            quality.name,
            f"X{quality.suffix}",
            " ".join(str(i) for i in quality.intervals),
            f"{quality.pattern_confidence:.2f}",
            f"{quality.exact_confidence:.2f}" if quality.exact else "-",
        )

    console.print(table)


def _run_pipeline(pipeline, frames, history):
    """Feed frames through the pipeline; every sampled tick goes to the history."""
    events = []
    frame_count = 0
    for frame in frames:
        frame_count += 1
        event = pipeline.process(frame)
        if event is not None:
            events.append(event)
        if pipeline.last_sampled:
            history.record(event, frame.frame_time)
    return events, frame_count


def _show_timeline_table(segments):
    """Display chord segments in a table."""
    table = Table(title="Detected Chords")
    table.add_column("Chord", style="cyan")
    table.add_column("Time", style="yellow")
    table.add_column("Confidence", style="magenta")

    for segment in segments:
        table.add_row(
            segment["name"],
            f"{segment['start_ms'] / 1000:.2f}-{segment['end_ms'] / 1000:.2f}s",
            f"{segment['confidence']:.2f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
