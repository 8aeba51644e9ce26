"""Command-line interface for audio2midi.

Provides commands for:
- transcribe: Convert an audio file to a MIDI file
- info: Show audio file information
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .core import Audio2MidiError, TranscriptionConfig

app = typer.Typer(
    name="audio2midi",
    help="Monophonic audio to MIDI transcription",
    rich_markup_mode="markdown",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def transcribe(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, FLAC, MP3, ...)"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file path"
    ),
    json_path: Optional[Path] = typer.Option(
        None, "--json", help="Also write the notes as JSON to this path"
    ),
    window: int = typer.Option(4096, "--window", help="Pitch frame size in samples"),
    hop: int = typer.Option(512, "--hop", help="Pitch hop size in samples"),
    min_freq: float = typer.Option(80.0, "--min-freq", help="Lowest pitch to detect (Hz)"),
    max_freq: float = typer.Option(2000.0, "--max-freq", help="Highest pitch to detect (Hz)"),
    ticks: int = typer.Option(480, "--ticks", help="MIDI ticks per quarter note"),
    embed_tempo: bool = typer.Option(
        False, "--embed-tempo", help="Write the detected tempo into the MIDI file"
    ),
    merge: bool = typer.Option(
        True, "--merge/--no-merge", help="Merge notes split by short dips"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Transcribe an audio file to MIDI.

    **Examples:**

        audio2midi transcribe melody.wav

        audio2midi transcribe melody.wav -o out.mid --json notes.json -v
    """
    from .input import AudioLoader
    from .output import NotesJSONExporter
    from .pipeline import AudioToMidiConverter

    _setup_logging(verbose)

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    if output is None:
        output = input_file.with_suffix(".mid")

    try:
        config = TranscriptionConfig().replace(
            window_size=window,
            hop_size=hop,
            min_freq=min_freq,
            max_freq=max_freq,
            ticks_per_quarter=ticks,
            merge_pass=merge,
        )
        converter = AudioToMidiConverter(config, embed_tempo=embed_tempo)

        console.print(f"[blue]Loading audio:[/blue] {input_file}")
        audio, sr = AudioLoader().load(str(input_file))
        duration = AudioLoader.get_duration(audio, sr)
        if verbose:
            console.print(f"  Duration: {duration:.2f}s, Sample rate: {sr}Hz")

        with Progress(
            SpinnerColumn(),
            TextColumn("[blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Transcribing...", total=1.0)
            result = converter.convert(
                audio, sr, progress=lambda done: progress.update(task, completed=done)
            )

        console.print(f"  Detected {len(result.notes)} notes")
        console.print(f"  Tempo: {result.bpm:.0f} BPM")

        converter.encoder_for(result.tempo).export(result.notes, str(output))
        console.print(f"[blue]Exported MIDI:[/blue] {output}")

        if json_path is not None:
            NotesJSONExporter(tempo=result.bpm).export(
                result.notes,
                str(json_path),
                meta={"input": str(input_file), "sample_rate": sr, "duration": duration},
            )
            console.print(f"[blue]Exported JSON:[/blue] {json_path}")

    except (Audio2MidiError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]Transcription complete![/green]")

    if verbose and result.notes:
        _show_notes_table(result.notes)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .analysis import TempoAnalyzer
    from .input import AudioLoader

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    try:
        audio, sr = AudioLoader().load(str(input_file))
        tempo = TempoAnalyzer().estimate(audio, sr)
    except Audio2MidiError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {AudioLoader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")
    console.print(f"  Onsets: {len(tempo.onset_times)}")
    console.print(f"  Estimated tempo: {tempo.bpm:.1f} BPM")


def _show_notes_table(notes):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Pitch", style="cyan")
    table.add_column("Onset (s)", style="green")
    table.add_column("Duration (s)", style="yellow")
    table.add_column("Velocity", style="magenta")

    for note in notes:
        table.add_row(
            note.pitch_name,
            f"{note.onset:.3f}",
            f"{note.duration:.3f}",
            str(note.velocity),
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
