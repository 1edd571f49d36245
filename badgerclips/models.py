"""Shared data types used across BadgerClips."""

import enum
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SplitRequest:
    """One split invocation: which file, where to, and how long each clip is."""

    input: Path
    output_dir: Path
    length: int
    reencode: bool = False


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    stream_count: int


@dataclass
class ClipBoundary:
    """A start/end time pair in seconds, with its 1-based position in the plan."""

    start: float
    end: float
    index: int


@dataclass
class ClipResult:
    boundary: ClipBoundary
    output_path: Path


class Severity(enum.Enum):
    FATAL = "fatal"
    RECOVERABLE = "recoverable"


@dataclass
class Issue:
    """A classified failure raised by one pipeline step."""

    step: str
    severity: Severity
    message: str

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.FATAL
