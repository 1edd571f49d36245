"""Clip editor — names and writes one output file per clip boundary."""

from pathlib import Path

from badgerclips import ffutil
from badgerclips.models import ClipBoundary, ClipResult


def clip_filename(input_path: Path, boundary: ClipBoundary) -> str:
    return f"{input_path.stem}_{boundary.start:.2f}_{boundary.end:.2f}.mp4"


def write_clip(
    input_path: Path,
    boundary: ClipBoundary,
    output_dir: Path,
    reencode: bool = False,
) -> ClipResult:
    """Extract *boundary* from *input_path* into *output_dir*."""
    output_path = output_dir / clip_filename(input_path, boundary)
    ffutil.extract_clip(input_path, boundary, output_path, reencode=reencode)
    return ClipResult(boundary=boundary, output_path=output_path)
