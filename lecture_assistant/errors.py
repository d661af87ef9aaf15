"""
Exception types raised by the lecture pipeline.

Each error carries the HTTP status the web layer answers with. Errors that
belong to a single chunk or model call (``TranscriptionItemError``,
``LLMRequestError``, ``ModelParseError``, ``QuestionGenerationError``) are
caught inside the pipeline and only logged.
"""


class LectureAssistantError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MediaProbeError(LectureAssistantError):
    """The audio duration could not be determined, or is zero."""


class SegmentationError(LectureAssistantError):
    """ffmpeg failed to resample or segment the upload."""


class UploadTooLargeError(LectureAssistantError):
    status_code = 413


class NoFileProvidedError(LectureAssistantError):
    status_code = 400


class UnsupportedFormatError(LectureAssistantError):
    status_code = 400


class NoSpeechDetectedError(LectureAssistantError):
    status_code = 400


class TranscriptionError(LectureAssistantError):
    """Every chunk of the recording failed to transcribe."""


class TranscriptionItemError(LectureAssistantError):
    """A single audio chunk failed to transcribe."""

    def __init__(self, message: str, index: int = None):
        super().__init__(message)
        self.index = index


class LLMRequestError(LectureAssistantError):
    status_code = 502


class ModelParseError(LectureAssistantError):
    """A model response did not contain a usable JSON object."""

    status_code = 502


class QuestionGenerationError(LectureAssistantError):
    status_code = 502
