"""Detection-layer data contracts.

Shape definitions only; no document access and no inference logic.
The cascade in ``detector.py`` produces :class:`DetectionResult`, and the
classifiers in ``language.py`` / ``shell.py`` speak :class:`ContentTag`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


# closed label set standing in for a file extension / language
class ContentTag(str, Enum):
    RS = "rs"
    JS = "js"
    TS = "ts"
    PY = "py"
    SH = "sh"
    JSON = "json"
    YAML = "yaml"
    TOML = "toml"
    SQL = "sql"
    HTML = "html"
    CSS = "css"
    MD = "md"
    GO = "go"
    JAVA = "java"
    CPP = "cpp"
    RB = "rb"
    PHP = "php"
    SWIFT = "swift"
    KT = "kt"
    DOCKERFILE = "dockerfile"
    TXT = "txt"

    @property
    def extension(self) -> str:
        return self.value


# which cascade stage produced the filename
class DetectionSource(str, Enum):
    HEADER = "header"
    DATA_ATTR = "data-attr"
    TITLE_ATTR = "title-attr"
    CONTEXT = "context"
    COMMENT = "comment"
    CODE_STRUCTURE = "code-structure"
    MARKDOWN = "markdown"
    EXTRACTED = "extracted"
    GENERATED = "generated"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class DetectionResult(BaseModel):
    """Best-effort destination filename for one block.

    ``confidence`` is ``none`` exactly when the name was synthesized
    (``source == generated``); callers surface it so the human knows how
    far to trust the guess.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    source: DetectionSource
    confidence: Confidence

    @model_validator(mode="after")
    def _check_confidence(self) -> "DetectionResult":
        if not self.filename:
            raise ValueError("filename must be non-empty")
        generated = self.source is DetectionSource.GENERATED
        unrated = self.confidence is Confidence.NONE
        if generated != unrated:
            raise ValueError(
                "confidence 'none' is reserved for generated filenames "
                f"(got source={self.source.value}, confidence={self.confidence.value})"
            )
        return self
