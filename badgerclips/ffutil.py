"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import math
import shutil
import subprocess
from pathlib import Path

from badgerclips.models import ClipBoundary, ProbeResult

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class ProbeError(RuntimeError):
    """Raised when ffprobe cannot be run or its output cannot be read."""
    pass


class NoStreamsError(ValueError):
    """Raised when the input file reports zero media streams."""
    pass


class TranscodeError(RuntimeError):
    """Raised when ffmpeg cannot be launched or exits non-zero."""
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def _stderr_tail(stderr, limit: int = 500) -> str:
    if not stderr:
        return ""
    if not isinstance(stderr, str):
        stderr = stderr.decode(errors="replace")
    return stderr.strip()[-limit:]


def parse_probe_output(stdout: str) -> ProbeResult:
    """Read the first stream's duration out of ffprobe's JSON output.

    A first stream without a ``duration`` field yields a duration of 0.0.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"ffprobe returned malformed JSON: {e}") from e

    streams = data.get("streams") or []
    if not streams:
        raise NoStreamsError("Zero streams found in file")

    raw = streams[0].get("duration")
    if raw is None:
        return ProbeResult(duration=0.0, stream_count=len(streams))

    try:
        duration = float(raw)
    except (TypeError, ValueError) as e:
        raise ProbeError(f"Unreadable stream duration {raw!r}") from e
    if not math.isfinite(duration):
        raise ProbeError(f"Unreadable stream duration {raw!r}")

    return ProbeResult(duration=max(duration, 0.0), stream_count=len(streams))


def probe(input_path: Path) -> ProbeResult:
    """Extract stream metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_streams",
        str(input_path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except FileNotFoundError as e:
        raise ProbeError("ffprobe not found on PATH") from e
    except subprocess.CalledProcessError as e:
        detail = _stderr_tail(e.stderr)
        raise ProbeError(
            f"ffprobe failed (rc={e.returncode}) on {input_path}"
            + (f": {detail}" if detail else "")
        ) from e

    probe_result = parse_probe_output(result.stdout)
    logger.debug(
        "Probed %s: %d stream(s), duration %.3fs",
        input_path, probe_result.stream_count, probe_result.duration,
    )
    return probe_result


def build_clip_command(
    input_path: Path, boundary: ClipBoundary, output_path: Path, reencode: bool
) -> list[str]:
    """Build the ffmpeg argv for one clip.

    Without ``reencode`` the streams are copied, which is fast but cuts on
    the nearest keyframe.
    """
    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-ss", str(boundary.start),
        "-to", str(boundary.end),
    ]
    if not reencode:
        cmd += ["-c", "copy"]
    cmd.append(str(output_path))
    return cmd


def extract_clip(
    input_path: Path, boundary: ClipBoundary, output_path: Path, reencode: bool = False
) -> Path:
    """Run ffmpeg for a single clip and block until it exits."""
    cmd = build_clip_command(input_path, boundary, output_path, reencode)
    logger.debug("Running: %s", " ".join(cmd))
    try:
        subprocess.run(cmd, capture_output=True, check=True)
    except FileNotFoundError as e:
        raise TranscodeError("Failed to launch ffmpeg: not found on PATH") from e
    except subprocess.CalledProcessError as e:
        detail = _stderr_tail(e.stderr)
        raise TranscodeError(
            f"ffmpeg failed (rc={e.returncode}) for {output_path.name}"
            + (f": {detail}" if detail else "")
        ) from e
    return output_path
