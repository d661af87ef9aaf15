"""
Audio probing, resampling and fixed-duration chunking with FFmpeg
"""
import math
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

import ffmpeg

from .config import PipelineSettings
from .errors import MediaProbeError, SegmentationError, UnsupportedFormatError
from .logger import setup_logger
from .models import AudioChunk

logger = setup_logger(__name__)

SEGMENT_PATTERN = "chunk_%03d.wav"


def estimate_chunk_count(duration_seconds: float, chunk_seconds: float) -> int:
    """Number of chunks ``split_audio`` produces for a recording."""
    if duration_seconds <= chunk_seconds:
        return 1
    return math.ceil(duration_seconds / chunk_seconds)


def ordered_segments(segment_dir: Path) -> List[Path]:
    """Segment files in playback order, by numeric index rather than name."""
    return sorted(
        segment_dir.glob("chunk_*.wav"),
        key=lambda path: int(path.stem.split("_", 1)[1])
    )


class AudioProcessor:
    """Split uploaded audio into WAV chunks ready for transcription"""

    def __init__(self, settings: Optional[PipelineSettings] = None):
        settings = settings or PipelineSettings()
        self.supported_formats = settings.supported_formats
        self.sample_rate = settings.sample_rate
        self.channels = settings.channels
        self.codec = settings.codec
        self.chunk_duration = settings.chunk_duration_seconds
        self.temp_dir = settings.temp_dir

    def normalize_format(self, audio_format: str) -> str:
        """
        Validate a declared format or file extension.

        Args:
            audio_format: Extension with or without the leading dot

        Returns:
            str: Lower-case extension without the dot
        """
        file_ext = (audio_format or "").lower().lstrip(".")
        if file_ext not in self.supported_formats:
            raise UnsupportedFormatError(
                f"Unsupported format: .{file_ext}. "
                f"Supported formats: {', '.join(['.' + fmt for fmt in self.supported_formats])}"
            )
        return file_ext

    def split_audio(self, data: bytes, audio_format: str) -> List[AudioChunk]:
        """
        Split an audio upload into chunks of at most ``chunk_duration`` seconds.

        Every chunk is re-encoded as 16 kHz mono PCM WAV. Recordings no longer
        than one chunk are only resampled. All intermediate files live in a
        temporary directory that is removed before this method returns.

        Args:
            data: Raw bytes of the uploaded file
            audio_format: Declared format / extension of the upload

        Returns:
            list: AudioChunk objects in chronological order

        Raises:
            MediaProbeError: duration missing, zero or unparseable
            SegmentationError: FFmpeg failed to produce chunks
        """
        file_ext = self.normalize_format(audio_format)

        with tempfile.TemporaryDirectory(prefix="lecture_", dir=self._temp_root()) as work_dir:
            work_path = Path(work_dir)
            source_path = work_path / f"source.{file_ext}"
            source_path.write_bytes(data)

            duration = self.probe_duration(source_path)
            expected = estimate_chunk_count(duration, self.chunk_duration)
            logger.info(
                f"Audio duration {self._format_duration(duration)}, "
                f"expecting {expected} chunk(s) of up to {self.chunk_duration}s"
            )

            if duration <= self.chunk_duration:
                output_path = work_path / "chunk_000.wav"
                self._run(self.build_resample_stream(source_path, output_path), "resample")
                chunk_paths = [output_path] if output_path.exists() else []
            else:
                segment_dir = work_path / "segments"
                segment_dir.mkdir()
                self._run(self.build_segment_stream(source_path, segment_dir), "segment")
                chunk_paths = ordered_segments(segment_dir)

            if not chunk_paths:
                raise SegmentationError("FFmpeg produced no audio chunks")

            chunks = [
                AudioChunk(index=index, data=path.read_bytes(), format="wav")
                for index, path in enumerate(chunk_paths)
            ]

        logger.info(f"Split audio into {len(chunks)} chunk(s)")
        return chunks

    def probe_duration(self, file_path: Path) -> float:
        """
        Read the container duration with ffprobe.

        Raises:
            MediaProbeError: if ffprobe fails or reports no positive duration
        """
        try:
            probe = ffmpeg.probe(str(file_path))
        except ffmpeg.Error as e:
            error_message = e.stderr.decode(errors="replace") if e.stderr else str(e)
            logger.error(f"ffprobe failed: {error_message}")
            raise MediaProbeError(f"Could not read audio metadata: {error_message}")
        except FileNotFoundError:
            raise MediaProbeError("ffprobe is not installed or not in PATH")

        raw_duration = probe.get("format", {}).get("duration")
        if raw_duration is None:
            # Some containers only report duration per stream
            audio_streams = [s for s in probe.get("streams", []) if s.get("codec_type") == "audio"]
            if audio_streams:
                raw_duration = audio_streams[0].get("duration")

        try:
            duration = float(raw_duration)
        except (TypeError, ValueError):
            raise MediaProbeError(f"Unparseable audio duration: {raw_duration!r}")

        if not math.isfinite(duration) or duration <= 0:
            raise MediaProbeError(f"Audio has no playable duration ({duration}s)")

        return duration

    def build_resample_stream(self, input_path: Path, output_path: Path):
        """FFmpeg command converting the whole file to one WAV."""
        return (
            ffmpeg
            .input(str(input_path))
            .output(
                str(output_path),
                acodec=self.codec,
                ac=self.channels,
                ar=self.sample_rate
            )
            .overwrite_output()
        )

    def build_segment_stream(self, input_path: Path, output_dir: Path):
        """FFmpeg command cutting the file into fixed-duration WAV segments."""
        return (
            ffmpeg
            .input(str(input_path))
            .output(
                str(output_dir / SEGMENT_PATTERN),
                f="segment",
                segment_time=self.chunk_duration,
                reset_timestamps=1,
                acodec=self.codec,
                ac=self.channels,
                ar=self.sample_rate
            )
            .overwrite_output()
        )

    def _run(self, stream, action: str) -> None:
        try:
            stream.run(capture_stdout=True, capture_stderr=True, quiet=True)
        except ffmpeg.Error as e:
            error_message = e.stderr.decode(errors="replace") if e.stderr else str(e)
            logger.error(f"FFmpeg error during {action}: {error_message}")
            raise SegmentationError(f"Audio {action} failed: {error_message}")
        except FileNotFoundError:
            logger.error("FFmpeg is not installed or not in PATH")
            raise SegmentationError("FFmpeg is not installed or not in PATH")

    def _temp_root(self) -> Optional[str]:
        if self.temp_dir is None:
            return None
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)
        return str(self.temp_dir)

    def _format_duration(self, seconds: float) -> str:
        """
        Format duration in seconds to HH:MM:SS.

        Args:
            seconds: Duration in seconds

        Returns:
            str: Formatted duration string
        """
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)

        if hours > 0:
            return f"{hours:02d}:{minutes:02d}:{secs:02d}"
        else:
            return f"{minutes:02d}:{secs:02d}"


def check_ffmpeg_installed() -> bool:
    """
    Check if FFmpeg is installed and accessible.

    Returns:
        bool: True if FFmpeg is installed, False otherwise
    """
    try:
        subprocess.run(
            ['ffmpeg', '-version'],
            capture_output=True,
            check=True
        )
        logger.info("FFmpeg is installed and accessible")
        return True
    except FileNotFoundError:
        logger.error("FFmpeg is not installed or not in PATH")
        return False
    except subprocess.CalledProcessError as e:
        logger.error(f"Error checking FFmpeg: {str(e)}")
        return False
