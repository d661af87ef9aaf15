"""
File export functionality - save lecture results in various formats
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import EXPORT_SETTINGS, OUTPUTS_DIR
from .logger import setup_logger
from .models import LectureResult

logger = setup_logger(__name__)


def render_markdown(result: LectureResult) -> str:
    """Lay out summary, notes and questions as a Markdown study sheet."""
    lines = ["## Summary", "", result.summary, ""]

    if result.structured_notes:
        lines += ["## Notes", ""]
        for note in result.structured_notes:
            lines.append(f"### {note.heading}")
            lines.extend(f"- {point}" for point in note.points)
            lines.append("")

    if result.qa_pairs:
        lines += ["## Exam Questions", ""]
        for number, pair in enumerate(result.qa_pairs, 1):
            lines.append(f"**Q{number} ({pair.marks} marks).** {pair.question}")
            lines.append("")
            lines.append(f"**Answer:** {pair.answer}")
            lines.append("")

    lines += ["---", "", "## Transcript", "", result.transcription, ""]
    return "\n".join(lines)


class FileExporter:
    """Export lecture results to various file formats"""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir or OUTPUTS_DIR)
        self.output_dir.mkdir(exist_ok=True, parents=True)

    def export_to_txt(
        self,
        content: str,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Export content to a text file.

        Args:
            content: Text content to export
            filename: Output filename (without extension)
            metadata: Optional metadata to include at the top

        Returns:
            str: Path to exported file
        """
        output_path = self.output_dir / f"{filename}.txt"

        with open(output_path, 'w', encoding='utf-8') as f:
            if metadata and EXPORT_SETTINGS.get('include_metadata', True):
                f.write(self._format_metadata_header(metadata))
                f.write("\n" + "=" * 80 + "\n\n")
            f.write(content)

        logger.info(f"Exported to TXT: {output_path}")
        return str(output_path)

    def export_to_markdown(
        self,
        content: str,
        filename: str,
        title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Export content to a Markdown file.

        Args:
            content: Markdown body
            filename: Output filename (without extension)
            title: Optional title for the document
            metadata: Optional metadata to include

        Returns:
            str: Path to exported file
        """
        output_path = self.output_dir / f"{filename}.md"

        with open(output_path, 'w', encoding='utf-8') as f:
            if title:
                f.write(f"# {title}\n\n")

            if metadata and EXPORT_SETTINGS.get('include_metadata', True):
                f.write("## Metadata\n\n")
                for key, value in metadata.items():
                    f.write(f"- **{key}**: {value}\n")
                f.write("\n---\n\n")

            f.write(content)

        logger.info(f"Exported to Markdown: {output_path}")
        return str(output_path)

    def export_to_json(self, data: Dict[str, Any], filename: str) -> str:
        """
        Export data to JSON file.

        Returns:
            str: Path to exported file
        """
        output_path = self.output_dir / f"{filename}.json"

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Exported to JSON: {output_path}")
        return str(output_path)

    def export_lecture(
        self,
        result: LectureResult,
        base_filename: str,
        source_name: Optional[str] = None
    ) -> Dict[str, str]:
        """
        Export one processed lecture as transcript TXT, study-sheet Markdown and JSON.

        Returns:
            dict: Paths to all exported files
        """
        metadata = {
            'Date': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'Audio File': source_name or 'Unknown',
            'Word Count (Transcript)': len(result.transcription.split()),
            'Notes': len(result.structured_notes),
            'Questions': len(result.qa_pairs),
            'Summary Generated': 'No' if result.fallback else 'Yes',
        }

        exported_files = {
            'transcript_txt': self.export_to_txt(
                result.transcription,
                f"{base_filename}_transcript",
                metadata
            ),
            'markdown': self.export_to_markdown(
                render_markdown(result),
                f"{base_filename}_study_notes",
                title="Lecture Study Notes",
                metadata=metadata
            ),
            'json': self.export_to_json(
                {'metadata': metadata, **result.to_dict()},
                f"{base_filename}_data"
            ),
        }

        logger.info(f"Exported lecture: {len(exported_files)} files")
        return exported_files

    def _format_metadata_header(self, metadata: Dict[str, Any]) -> str:
        lines = ["METADATA", "=" * 80]
        for key, value in metadata.items():
            lines.append(f"{key}: {value}")
        return "\n".join(lines)

    def generate_filename(
        self,
        base_name: Optional[str] = None,
        include_timestamp: Optional[bool] = None
    ) -> str:
        """
        Generate a filename for export.

        Args:
            base_name: Optional base name for the file
            include_timestamp: Whether to include timestamp (defaults to EXPORT_SETTINGS)

        Returns:
            str: Generated filename (without extension)
        """
        parts = []

        if base_name:
            base_name = base_name.replace(' ', '_')
            base_name = ''.join(c for c in base_name if c.isalnum() or c in ('_', '-'))
        parts.append(base_name or 'lecture')

        if include_timestamp is None:
            include_timestamp = EXPORT_SETTINGS.get('include_timestamp', True)
        if include_timestamp:
            parts.append(datetime.now().strftime('%Y%m%d_%H%M%S'))

        return '_'.join(parts)
