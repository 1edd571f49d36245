"""Orchestrator — splits one video into fixed-length clips."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from badgerclips import ffutil
from badgerclips.analyzers.boundaries import estimate_clip_count, plan_clips
from badgerclips.editors.split import write_clip
from badgerclips.manifest import ErrorPolicy
from badgerclips.models import ClipResult, Issue, Severity, SplitRequest

logger = logging.getLogger(__name__)


@dataclass
class SplitResult:
    request: SplitRequest
    duration: float = 0.0
    estimated_clips: int = 0
    clips: list[ClipResult] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)

    @property
    def fatal(self) -> Issue | None:
        return next((i for i in self.issues if i.fatal), None)

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal else 0

    @property
    def output_paths(self) -> list[Path]:
        return [c.output_path for c in self.clips]


def split(
    request: SplitRequest,
    policy: ErrorPolicy | None = None,
    on_progress: Callable[[str, float], None] | None = None,
    on_clip: Callable[[ClipResult], None] | None = None,
) -> SplitResult:
    """Run the split pipeline for one request.

    Every failure is recorded on the result as an ``Issue``. Recoverable
    issues fall back to a default and the pipeline continues; the first
    fatal issue stops it.

    Args:
        request: What to split and where the clips go.
        policy: Severity of the configurable failures. Defaults to all
            recoverable.
        on_progress: Optional callback(stage_name, fraction_complete).
        on_clip: Optional callback invoked after each clip is written.
    """
    policy = policy or ErrorPolicy()
    result = SplitResult(request=request)

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _report(step: str, severity: Severity, message: str) -> bool:
        """Record an issue; return True when the pipeline must stop."""
        issue = Issue(step=step, severity=severity, message=message)
        result.issues.append(issue)
        if issue.fatal:
            logger.error("%s (fatal)", message)
        else:
            logger.error("%s; continuing", message)
        return issue.fatal

    # --- Output directory ---
    try:
        request.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        if _report("mkdir", policy.mkdir_failure, f"Failed to create output directory: {e}"):
            return result

    # --- Input file ---
    if not request.input.exists():
        if _report("validate", policy.missing_input, f"Input file does not exist: {request.input}"):
            return result

    # --- Probe ---
    _progress("Probing video metadata", 0.0)
    try:
        probe_result = ffutil.probe(request.input)
    except ffutil.NoStreamsError as e:
        _report("probe", Severity.FATAL, f"{e}: {request.input}")
        return result
    except ffutil.ProbeError as e:
        if _report("probe", policy.probe_failure, f"Failed to probe input file: {e}"):
            return result
    else:
        result.duration = probe_result.duration

    # --- Split loop ---
    result.estimated_clips = estimate_clip_count(result.duration, request.length)
    if result.duration == 0:
        logger.warning("Input duration is 0; no clips to write")

    for boundary in plan_clips(result.duration, request.length):
        total = max(result.estimated_clips, boundary.index)
        _progress(
            f"Processing clip {boundary.index} of {total}",
            (boundary.index - 1) / total,
        )
        try:
            clip = write_clip(
                request.input, boundary, request.output_dir, reencode=request.reencode
            )
        except ffutil.TranscodeError as e:
            _report("transcode", Severity.FATAL, str(e))
            return result
        result.clips.append(clip)
        logger.info("Wrote %s", clip.output_path)
        if on_clip:
            on_clip(clip)

    _progress("Done", 1.0)
    return result
