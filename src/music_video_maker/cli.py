"""Command-line interface for analyzing songs and rendering music videos."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import settings
from .errors import MusicVideoError
from .models import Clip, ColorGrade, ColorPreset, ProjectStatus, Song, Transition, VideoProject
from .tools.audio_analysis import AudioAnalysisEngine
from .tools.composition import CompositionEngine
from .utils.logging_config import configure_logging
from .utils.simple_logger import setup_logging


logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="music-video-maker",
        description="Analyze songs and render music videos from clips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Tempo, energy, loudness and mood of a song
  %(prog)s analyze song.mp3

  # Machine-readable analysis
  %(prog)s analyze song.mp3 --json

  # Render clips over a song with dissolves and a cinematic grade
  %(prog)s render song.mp3 intro.mp4 verse.mp4 chorus.mp4 -o video.mp4 \\
      --transition dissolve --preset cinematic
        """
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging with source locations'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Analyze a song')
    analyze.add_argument('song', help='Path to the audio file')
    analyze.add_argument(
        '--json',
        action='store_true',
        help='Print the full analysis as JSON'
    )

    render = subparsers.add_parser('render', help='Render clips over a song')
    render.add_argument('song', help='Path to the audio file')
    render.add_argument('clips', nargs='+', help='Video clips in play order')
    render.add_argument(
        '-o', '--output',
        help='Output mp4 path (default: generated under ./data/exports/)'
    )
    render.add_argument(
        '--transition',
        choices=[t.value for t in Transition],
        default=Transition.FADE.value,
        help='Transition into each clip after the first (default: fade)'
    )
    render.add_argument(
        '--preset',
        choices=[p.value for p in ColorPreset],
        help='Color grade preset applied to every clip'
    )
    render.add_argument(
        '--trim-start',
        type=float,
        default=0.0,
        help='Seconds trimmed from the start of each clip'
    )
    render.add_argument(
        '--trim-end',
        type=float,
        default=0.0,
        help='Seconds trimmed from the end of each clip'
    )

    return parser.parse_args(argv)


async def run_analyze(args: argparse.Namespace) -> int:
    engine = AudioAnalysisEngine()
    analysis = await engine.analyze_file(args.song)

    if args.json:
        print(analysis.model_dump_json(indent=2))
        return 0

    print(f"\n{Path(args.song).name}")
    print(f"{'=' * 50}")
    print(f"Tempo:    {analysis.tempo:.1f} BPM")
    print(f"Energy:   {analysis.energy:.3f}")
    print(f"Loudness: {analysis.loudness:.1f} dB")
    print(f"Mood:     {analysis.mood.description}")
    print(f"{'=' * 50}")
    for segment in analysis.segments:
        print(
            f"  {segment.start_time:6.1f}s +{segment.duration:4.1f}s  "
            f"{segment.tempo:6.1f} BPM  energy {segment.energy:.3f}  {segment.loudness:6.1f} dB"
        )
    return 0


async def run_render(args: argparse.Namespace) -> int:
    engine = CompositionEngine()
    loop = asyncio.get_running_loop()

    song_duration = await loop.run_in_executor(None, engine.backend.probe_audio, args.song)
    project = VideoProject(song=Song(path=args.song, title=Path(args.song).stem, duration=song_duration))

    grade = ColorGrade.from_preset(ColorPreset(args.preset)) if args.preset else None
    transition = Transition(args.transition)
    for path in args.clips:
        try:
            duration = await loop.run_in_executor(None, engine.backend.probe_video, path)
        except Exception as e:
            logger.warning(f"Skipping unreadable clip {path}: {e}")
            continue
        trim_start = min(args.trim_start, duration)
        trim_end = min(args.trim_end, duration - trim_start)
        project.timeline.append(Clip(
            media_path=path,
            duration=duration,
            trim_start=trim_start,
            trim_end=trim_end,
            transition=transition,
            color_grade=grade,
        ))
    project.status = ProjectStatus.READY

    def show_progress(fraction: float) -> None:
        print(f"\rExporting... {fraction * 100:5.1f}%", end="", flush=True)

    path = await engine.export_project(project, args.output, show_progress)
    print(f"\n\nVideo: {path}")
    rendered = len(project.timeline) - len(project.skipped_clip_ids)
    print(f"Duration: {project.export_duration:.1f}s, {rendered} of {len(project.timeline)} clips rendered")
    for clip in project.timeline:
        if clip.id in project.skipped_clip_ids:
            print(f"  Skipped: {clip.media_path}")
    return 0


async def main_async(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    if args.verbose:
        # file:line records for debugging
        configure_logging("DEBUG")
    else:
        setup_logging(settings.log_level)

    try:
        if args.command == 'analyze':
            return await run_analyze(args)
        return await run_render(args)
    except MusicVideoError as e:
        print(f"\nError: {e}")
        return 1
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    try:
        return asyncio.run(main_async(argv))
    except KeyboardInterrupt:
        print("\n\nProcess interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
