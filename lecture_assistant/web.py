"""
HTTP API for lecture processing
"""
import time
from pathlib import Path
from typing import Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from werkzeug.utils import secure_filename

from .audio_processor import check_ffmpeg_installed
from .config import PipelineSettings
from .errors import LectureAssistantError, NoFileProvidedError
from .logger import setup_logger
from .models import parse_marks_list, parse_mode
from .pipeline import LecturePipeline

logger = setup_logger(__name__)

# Upload MIME subtypes mapped to the formats FFmpeg is given
MIMETYPE_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/flac": "flac",
    "audio/ogg": "ogg",
    "audio/webm": "webm",
    "video/webm": "webm",
    "video/mp4": "mp4",
}


def detect_audio_format(file_name: str, mimetype: Optional[str]) -> str:
    """File extension if there is one, otherwise a guess from the MIME type."""
    suffix = Path(file_name or "").suffix.lower().lstrip(".")
    if suffix:
        return suffix
    return MIMETYPE_FORMATS.get((mimetype or "").lower(), "webm")


def create_app(pipeline: Optional[LecturePipeline] = None, settings: Optional[PipelineSettings] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        pipeline: Pipeline to serve; built from settings when omitted
        settings: Pipeline settings; read from the environment when omitted
    """
    if settings is None:
        settings = pipeline.settings if pipeline is not None else PipelineSettings.from_env()
    if pipeline is None:
        pipeline = LecturePipeline.from_settings(settings)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = settings.max_upload_bytes
    app.extensions['lecture_pipeline'] = pipeline

    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def log_api_request(response):
        if request.path.startswith("/api"):
            duration_ms = (time.time() - g.get("request_started", time.time())) * 1000
            logger.info(f"{request.method} {request.path} {response.status_code} in {duration_ms:.0f}ms")
        return response

    # ==================== Health Endpoint ====================
    @app.route("/healthz")
    def healthz():
        ffmpeg_ok = check_ffmpeg_installed()
        status = {
            "status": "ok" if ffmpeg_ok else "degraded",
            "ffmpeg": ffmpeg_ok,
            "stored_results": len(pipeline.store),
        }
        return jsonify(status), 200 if ffmpeg_ok else 503

    # ==================== Main Routes ====================
    @app.route("/api/process-audio", methods=["POST"])
    def process_audio():
        file = request.files.get("audio")
        if file is None or not file.filename:
            raise NoFileProvidedError("No audio file provided")

        original_filename = file.filename
        file_name = secure_filename(original_filename) or "upload"
        audio_bytes = file.read()
        logger.info(f"Processing file: {original_filename}, Size: {len(audio_bytes)} bytes")

        marks = parse_marks_list(
            request.form.get("marksList"),
            default=settings.default_marks,
            marks_range=settings.marks_range,
            max_entries=settings.max_marks_entries,
        )
        mode = parse_mode(request.form.get("mode"))

        result = pipeline.process(
            audio_bytes,
            file_name,
            mode=mode,
            marks=marks,
            audio_format=detect_audio_format(original_filename, file.mimetype),
        )
        return jsonify(result.to_dict()), 200

    # ==================== Error Handlers ====================
    @app.errorhandler(LectureAssistantError)
    def handle_pipeline_error(e: LectureAssistantError):
        if e.status_code >= 500:
            logger.error(f"Processing error: {e.message}")
        else:
            logger.warning(f"Rejected request: {e.message}")
        return jsonify({"message": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({"message": f"File size exceeds {settings.max_upload_mb} MB limit"}), 413

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({"message": "Failed to process audio"}), 500

    return app
