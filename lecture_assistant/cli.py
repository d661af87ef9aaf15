"""
Command-line interface for batch processing lectures
"""
import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from .audio_processor import check_ffmpeg_installed
from .config import LECTURE_MODES, OUTPUTS_DIR, PipelineSettings
from .errors import LectureAssistantError
from .file_exporter import FileExporter
from .logger import setup_logger
from .models import parse_marks_list, parse_mode
from .pipeline import LecturePipeline, PipelineStage

logger = setup_logger(__name__)

STAGE_LABELS = {
    PipelineStage.SPLITTING: "✂️  Splitting audio into chunks...",
    PipelineStage.TRANSCRIBING: "📝 Transcribing chunks...",
    PipelineStage.SUMMARIZING: "📚 Generating summary and notes...",
    PipelineStage.GENERATING_QUESTIONS: "❓ Generating exam questions...",
}


def _print_stage(stage: PipelineStage):
    label = STAGE_LABELS.get(stage)
    if label:
        print(f"\n{label}")


def process_single_file(
    pipeline: LecturePipeline,
    file_path: Path,
    mode: str,
    marks_list: Optional[List[int]],
    exporter: Optional[FileExporter]
) -> bool:
    """Process a single audio file, returning True on success"""

    print(f"\n{'=' * 60}")
    print(f"Processing: {file_path.name}")
    print(f"{'=' * 60}")

    start_time = time.time()
    settings = pipeline.settings

    try:
        result = pipeline.process(
            file_path.read_bytes(),
            file_path.name,
            mode=parse_mode(mode),
            marks=parse_marks_list(
                marks_list,
                default=settings.default_marks,
                marks_range=settings.marks_range,
                max_entries=settings.max_marks_entries,
            ),
            progress_callback=_print_stage,
        )
    except LectureAssistantError as e:
        logger.error(f"Error processing {file_path}: {e.message}")
        print(f"❌ Error: {e.message}")
        return False

    print(f"\n✅ Transcript: {len(result.transcription.split())} words")
    if result.fallback:
        print("⚠️ Summary could not be generated, transcript only")
    else:
        print(f"✅ Notes: {len(result.structured_notes)} sections, "
              f"questions: {len(result.qa_pairs)}")

    if exporter is not None:
        base_filename = exporter.generate_filename(file_path.stem)
        exported_files = exporter.export_lecture(result, base_filename, source_name=file_path.name)
        print(f"💾 Exported {len(exported_files)} files to {exporter.output_dir}")
        for file_type, exported in exported_files.items():
            print(f"   - {file_type}: {Path(exported).name}")

    print(f"\n✨ Processing complete in {time.time() - start_time:.1f} seconds")
    return True


def process_batch(
    pipeline: LecturePipeline,
    file_paths: List[Path],
    mode: str,
    marks_list: Optional[List[int]],
    exporter: Optional[FileExporter],
    pause_seconds: float = 5.0
) -> int:
    """Process multiple audio files one after another; returns the failure count"""

    print(f"\n{'#' * 60}")
    print(f"  BATCH PROCESSING: {len(file_paths)} files")
    print(f"{'#' * 60}")

    successful = 0
    failed = 0
    start_time = time.time()

    for i, file_path in enumerate(file_paths, 1):
        print(f"\n[{i}/{len(file_paths)}]")

        if process_single_file(pipeline, file_path, mode, marks_list, exporter):
            successful += 1
        else:
            failed += 1

        # Keep the provider rate limits happy between files
        if i < len(file_paths) and pause_seconds > 0:
            print(f"\nPausing for {pause_seconds:g} seconds before next file...")
            time.sleep(pause_seconds)

    elapsed_time = time.time() - start_time
    print(f"\n{'#' * 60}")
    print("  BATCH PROCESSING COMPLETE")
    print(f"{'#' * 60}")
    print(f"\n✅ Successful: {successful}")
    print(f"❌ Failed: {failed}")
    print(f"⏱️  Total time: {elapsed_time / 60:.1f} minutes")
    return failed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lecture Assistant - Command Line Interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process single file
  lecture-assistant lecture.mp3

  # Numerical lecture with 5 and 10 mark questions
  lecture-assistant lecture.mp3 --mode numerical --marks 5 10

  # Batch process multiple files
  lecture-assistant lecture1.mp3 lecture2.wav lecture3.m4a

  # Don't export (just display)
  lecture-assistant lecture.mp3 --no-export
        """
    )

    parser.add_argument('files', nargs='+', help='Audio file(s) to process')
    parser.add_argument(
        '--mode',
        choices=list(LECTURE_MODES),
        default='theory',
        help='Lecture mode (default: theory)'
    )
    parser.add_argument(
        '--marks',
        type=int,
        nargs='+',
        help='Question marks to generate, at most two values (default: 2 5)'
    )
    parser.add_argument(
        '--output-dir',
        default=str(OUTPUTS_DIR),
        help='Directory for exported files'
    )
    parser.add_argument(
        '--no-export',
        action='store_true',
        help="Don't export results to files"
    )
    return parser


def collect_files(paths: List[str], supported_formats) -> List[Path]:
    """Keep existing files with a supported extension, warning about the rest"""
    valid_files = []
    for file_path in paths:
        path = Path(file_path)
        if not path.is_file():
            print(f"⚠️  File not found: {file_path}")
            continue

        if path.suffix.lower().lstrip('.') not in supported_formats:
            print(f"⚠️  Unsupported format: {file_path}")
            continue

        valid_files.append(path.absolute())
    return valid_files


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function"""
    args = build_parser().parse_args(argv)
    settings = PipelineSettings.from_env()

    if not settings.groq_api_key:
        print("❌ GROQ_API_KEY not found in .env file")
        return 1
    if not check_ffmpeg_installed():
        print("❌ FFmpeg is not installed or not on PATH")
        return 1

    valid_files = collect_files(args.files, settings.supported_formats)
    if not valid_files:
        print("❌ No valid files to process")
        return 1

    pipeline = LecturePipeline.from_settings(settings)
    exporter = None if args.no_export else FileExporter(Path(args.output_dir))

    if len(valid_files) == 1:
        return 0 if process_single_file(pipeline, valid_files[0], args.mode, args.marks, exporter) else 1
    return 1 if process_batch(pipeline, valid_files, args.mode, args.marks, exporter) else 0


def run():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n❌ Processing cancelled by user")
        sys.exit(1)


if __name__ == "__main__":
    run()
