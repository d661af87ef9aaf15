import json
from pathlib import Path

from lecture_assistant.file_exporter import FileExporter, render_markdown
from lecture_assistant.models import LectureResult, QAPair, StructuredNote


def _result(**overrides):
    values = dict(
        transcription="Entropy is a measure of disorder in a system.",
        summary="Entropy measures disorder.",
        structured_notes=(StructuredNote("Entropy", ("Definition", "Second law")),),
        qa_pairs=(QAPair("Define entropy.", "A measure of disorder.", 2),),
    )
    values.update(overrides)
    return LectureResult(**values)


def test_render_markdown_sections():
    markdown = render_markdown(_result())

    assert markdown.index("## Summary") < markdown.index("## Notes") < markdown.index("## Exam Questions")
    assert "### Entropy\n- Definition\n- Second law" in markdown
    assert "**Q1 (2 marks).** Define entropy." in markdown
    assert markdown.rstrip().endswith("Entropy is a measure of disorder in a system.")


def test_render_markdown_omits_empty_sections():
    markdown = render_markdown(_result(structured_notes=(), qa_pairs=()))
    assert "## Notes" not in markdown
    assert "## Exam Questions" not in markdown


def test_export_lecture_writes_three_files(tmp_path):
    exporter = FileExporter(tmp_path)

    paths = exporter.export_lecture(_result(), "physics_01", source_name="physics.mp3")

    assert set(paths) == {"transcript_txt", "markdown", "json"}
    assert Path(paths["transcript_txt"]).name == "physics_01_transcript.txt"
    assert Path(paths["markdown"]).read_text(encoding="utf-8").startswith("# Lecture Study Notes")

    data = json.loads(Path(paths["json"]).read_text(encoding="utf-8"))
    assert data["metadata"]["Audio File"] == "physics.mp3"
    assert data["metadata"]["Questions"] == 1
    assert data["qaPairs"] == [{"question": "Define entropy.", "answer": "A measure of disorder.", "marks": 2}]

    transcript = Path(paths["transcript_txt"]).read_text(encoding="utf-8")
    assert transcript.startswith("METADATA")
    assert transcript.endswith("Entropy is a measure of disorder in a system.")


def test_generate_filename(tmp_path):
    exporter = FileExporter(tmp_path)

    assert exporter.generate_filename("Week 3: Thermo!", include_timestamp=False) == "Week_3_Thermo"
    assert exporter.generate_filename(None, include_timestamp=False) == "lecture"
    assert exporter.generate_filename("x", include_timestamp=True).startswith("x_")
