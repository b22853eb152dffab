"""Command-line interface for voicescale.

Provides commands for:
- analyze: Detect syllable notes in a recording and suggest scales
- recommend: Suggest scales for a list of notes
- scales: Browse the built-in scale library
- info: Show audio file information
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List

import typer
from rich.console import Console
from rich.table import Table

from .logging_config import setup_logging, get_logger

app = typer.Typer(
    name="voicescale",
    help="Voice to notes to scale recommendation",
    rich_markup_mode="markdown",
)
console = Console()
logger = get_logger(__name__)


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        self._current_stage = stage
        self._start_time = time.time()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.time() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        return sum(self.stages.values())

    def print_summary(self) -> None:
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def parse_pitch_classes(tokens: List[str]) -> List[int]:
    """
    Parse note tokens into pitch classes.

    Accepts note names with octave ('A4', 'Bb3'), bare pitch names
    ('C#', 'Eb') and integers (taken mod 12).

    Raises:
        typer.BadParameter: A token cannot be parsed
    """
    from .core import note_from_name, as_optional

    classes = []
    for token in tokens:
        token = token.strip()
        if token.lstrip("-").isdigit():
            classes.append(int(token) % 12)
            continue

        note = as_optional(note_from_name(token))
        if note is None:
            # Bare pitch name: parse it at an arbitrary octave
            note = as_optional(note_from_name(f"{token}4"))
        if note is None:
            raise typer.BadParameter(f"Cannot parse note {token!r}")
        classes.append(note.pitch_class)
    return classes


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, ...)"),
    preset: str = typer.Option(
        "significant", "--preset", "-p", help="Detection preset: significant/default/daily"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
    recommend: bool = typer.Option(
        True, "--recommend/--no-recommend", help="Suggest scales for the detected notes"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Abort analysis after this many seconds"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Detect one note per syllable in a voice recording.

    **Examples:**

        voicescale analyze hello.wav

        voicescale analyze street.m4a --preset daily --json
    """
    from .core.errors import AnalysisError, InsufficientData
    from .input import AudioLoader
    from .inference import ScaleRecommender
    from .transcription import PipelineConfig, SyllableTranscriber

    setup_logging(verbose)

    try:
        config = PipelineConfig.from_preset(preset.lower())
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    timings = StageTimings()
    try:
        if not json_output:
            console.print(f"[blue]Loading audio:[/blue] {input_file}")
        timings.start("load")
        loader = AudioLoader()
        audio, sr = loader.load(str(input_file))
        timings.stop()

        if not json_output:
            console.print(f"[blue]Analyzing ({preset} preset)...[/blue]")
        timings.start("analyze")
        result = SyllableTranscriber(config).analyze(audio, sr, timeout=timeout)
        timings.stop()

        recommendations = []
        if recommend:
            timings.start("recommend")
            try:
                recommendations = ScaleRecommender().recommend(result.pitch_classes())
            except InsufficientData as e:
                logger.info("No scale recommendation: %s", e)
            timings.stop()
    except (AnalysisError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        output = {
            "input": str(input_file),
            "duration": result.duration,
            "sample_rate": result.sample_rate,
            "preset": preset,
            "notes": result.note_names,
            "syllables": [
                {
                    "index": s.index,
                    "start": s.start_time,
                    "end": s.end_time,
                    "note": s.note_name,
                    "frequency": s.primary_frequency,
                    "confidence": s.confidence,
                    "energy": s.energy,
                }
                for s in result.valid_syllables
            ],
            "overall_confidence": result.overall_confidence,
            "speech_ratio": result.speech_ratio,
            "quality": result.quality_grade.value,
            "recommendations": [
                {
                    "scale": r.scale.name,
                    "id": r.scale.id,
                    "confidence": r.confidence,
                    "similarity": r.similarity,
                }
                for r in recommendations
            ],
            "timing": timings.to_dict(),
        }
        console.print_json(data=output)
        return

    grade = result.quality_grade
    console.print(
        f"  Detected {len(result.notes)} notes "
        f"(quality: [{grade.color}]{grade.value}[/{grade.color}], "
        f"confidence {result.overall_confidence:.2f}, "
        f"speech {result.speech_ratio:.0%})"
    )
    if result.syllables:
        _show_syllables_table(result.valid_syllables)
    else:
        console.print("[yellow]No syllables detected[/yellow]")

    if recommendations:
        _show_recommendations_table(recommendations)

    if verbose:
        timings.print_summary()


@app.command("recommend")
def recommend_scales(
    notes: List[str] = typer.Argument(..., help="Notes such as C4 E4 G4, or pitch names C E G"),
    mood: Optional[str] = typer.Option(None, "--mood", "-m", help="Preferred mood"),
    genre: Optional[List[str]] = typer.Option(
        None, "--genre", "-g", help="Preferred genre (repeatable)"
    ),
    max_results: int = typer.Option(5, "--max", "-n", help="Maximum scales to show"),
    min_similarity: float = typer.Option(
        0.3, "--min-similarity", help="Minimum similarity (0-1)"
    ),
):
    """Suggest scales that fit a set of notes.

    **Examples:**

        voicescale recommend C4 E4 G4 B4

        voicescale recommend A C D E G --mood melancholic
    """
    from .core.errors import InsufficientData
    from .inference import Genre, RecommendationConfig, ScaleMood, ScaleRecommender

    setup_logging()

    try:
        config = RecommendationConfig(
            max_results=max_results,
            min_similarity=min_similarity,
            preferred_mood=ScaleMood(mood.lower()) if mood else None,
            preferred_genres=tuple(Genre(g.lower()) for g in genre or ()),
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        results = ScaleRecommender().recommend(parse_pitch_classes(notes), config)
    except InsufficientData as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matching scales[/yellow]")
        return
    _show_recommendations_table(results)


@app.command()
def scales(
    mood: Optional[str] = typer.Option(None, "--mood", "-m", help="Only this mood"),
    scale_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only this scale type"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Only this genre"),
):
    """List the built-in scales."""
    from .inference import Genre, ScaleLibrary, ScaleMood, ScaleSearchCriteria, ScaleType

    try:
        criteria = ScaleSearchCriteria(
            types=frozenset({ScaleType(scale_type.lower())}) if scale_type else frozenset(),
            moods=frozenset({ScaleMood(mood.lower())}) if mood else frozenset(),
            genres=frozenset({Genre(genre.lower())}) if genre else frozenset(),
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    found = ScaleLibrary().search(criteria)
    if not found:
        console.print("[yellow]No matching scales[/yellow]")
        return

    table = Table(title="Scales")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Type", style="blue")
    table.add_column("Mood", style="magenta")
    table.add_column("Complexity", style="yellow")
    table.add_column("Intervals")

    for scale in found:
        table.add_row(
            scale.id,
            scale.name,
            scale.type.value,
            scale.mood.value,
            str(scale.complexity),
            " ".join(str(i) for i in scale.intervals),
        )

    console.print(table)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .core.errors import AnalysisError
    from .input import AudioLoader
    from .analysis import SpectralAnalyzer, VoiceActivityDetector, average_peak_frequency, speech_ratio

    try:
        loader = AudioLoader()
        audio, sr = loader.load(str(input_file))
    except (AnalysisError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")

    if len(audio) == 0:
        return

    vad = VoiceActivityDetector(sample_rate=sr)
    console.print(f"  Voiced frames: {speech_ratio(vad.detect_voice_activity(audio)):.0%}")

    peak = average_peak_frequency(SpectralAnalyzer().analyze_segments(audio, sr, valid_only=True))
    if peak is not None:
        console.print(f"  Average voiced peak: {peak:.1f} Hz")


def _show_syllables_table(syllables):
    """Display syllables in a table."""
    table = Table(title="Detected Syllables")
    table.add_column("#", style="cyan")
    table.add_column("Note", style="green")
    table.add_column("Frequency (Hz)", style="yellow")
    table.add_column("Time (s)", style="blue")
    table.add_column("Confidence", style="magenta")

    for syllable in syllables:
        frequency = syllable.primary_frequency
        table.add_row(
            str(syllable.index),
            syllable.note_name or "-",
            f"{frequency:.1f}" if frequency is not None else "-",
            f"{syllable.start_time:.2f}-{syllable.end_time:.2f}",
            f"{syllable.confidence:.2f}",
        )

    console.print(table)


def _show_recommendations_table(results):
    """Display scale recommendations in a table."""
    table = Table(title="Recommended Scales")
    table.add_column("Scale", style="cyan")
    table.add_column("Mood", style="green")
    table.add_column("Similarity", style="yellow")
    table.add_column("Coverage", style="blue")
    table.add_column("Confidence", style="magenta")

    for result in results:
        table.add_row(
            result.scale.name,
            result.scale.mood.value,
            f"{result.similarity:.2f}",
            f"{result.coverage:.0%}",
            f"{result.confidence:.2f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
