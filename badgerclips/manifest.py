"""JSON manifest schema — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from badgerclips.models import Severity, SplitRequest


@dataclass
class ErrorPolicy:
    """How the configurable failures are classified.

    Zero streams and transcode failures are always fatal and not listed here.
    """

    missing_input: Severity = Severity.RECOVERABLE
    mkdir_failure: Severity = Severity.RECOVERABLE
    probe_failure: Severity = Severity.RECOVERABLE

    @classmethod
    def strict(cls) -> "ErrorPolicy":
        return cls(
            missing_input=Severity.FATAL,
            mkdir_failure=Severity.FATAL,
            probe_failure=Severity.FATAL,
        )


@dataclass
class SplitManifest:
    """Top-level split manifest."""

    request: SplitRequest
    version: str = "1"
    policy: ErrorPolicy = field(default_factory=ErrorPolicy)


def parse_length(value) -> int:
    """Validate a clip length: a positive whole number of seconds."""
    if isinstance(value, int) and not isinstance(value, bool):
        length = value
    elif isinstance(value, str) and value.strip().isdigit():
        length = int(value)
    else:
        length = 0
    if length <= 0:
        raise ValueError(f"Clip length must be a positive integer, got {value!r}")
    return length


def _parse_severity(name: str, value) -> Severity:
    try:
        return Severity(value)
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        raise ValueError(f"policy.{name} must be one of: {choices}") from None


def parse_policy(data: dict) -> ErrorPolicy:
    if data.get("strict", False):
        return ErrorPolicy.strict()
    policy = ErrorPolicy()
    for name in ("missing_input", "mkdir_failure", "probe_failure"):
        if name in data:
            setattr(policy, name, _parse_severity(name, data[name]))
    return policy


def load_manifest(path: str | Path) -> SplitManifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    missing = [k for k in ("input", "output_dir", "length") if k not in data]
    if missing:
        raise ValueError(
            "Manifest must contain 'input', 'output_dir' and 'length' fields "
            f"(missing: {', '.join(missing)})"
        )

    request = SplitRequest(
        input=Path(data["input"]),
        output_dir=Path(data["output_dir"]),
        length=parse_length(data["length"]),
        reencode=bool(data.get("reencode", False)),
    )
    policy = parse_policy(data["policy"]) if "policy" in data else ErrorPolicy()

    return SplitManifest(
        version=data.get("version", "1"),
        request=request,
        policy=policy,
    )
