"""Manifest parsing and composition input-property resolution."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from capstage.models.broll import BRollEntry
from capstage.models.captions import CaptionSegment, Manifest, StylePreset
from capstage.models.errors import ManifestError

logger = logging.getLogger(__name__)


def parse_manifest(payload: Any) -> Manifest:
    """Accept a flat caption array or a ``{captions, bRolls}`` object.

    Missing or non-array ``captions``/``bRolls`` fields default to empty.
    """
    if isinstance(payload, list):
        captions, b_rolls = payload, []
    elif isinstance(payload, dict):
        captions = payload.get("captions")
        b_rolls = payload.get("bRolls")
        captions = captions if isinstance(captions, list) else []
        b_rolls = b_rolls if isinstance(b_rolls, list) else []
    else:
        raise ManifestError(
            f"Manifest must be a JSON array or object, got {type(payload).__name__}"
        )

    try:
        return Manifest(
            captions=[CaptionSegment.model_validate(c) for c in captions],
            b_rolls=[BRollEntry.model_validate(b) for b in b_rolls],
        )
    except PydanticValidationError as e:
        raise ManifestError(
            f"Invalid manifest entry: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def load_manifest(path: Path) -> Manifest:
    """Read and parse a UTF-8 JSON manifest file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}", details={"path": str(path)}) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(
            f"Manifest {path} is not valid JSON: {e}", details={"path": str(path)}
        ) from e
    return parse_manifest(payload)


def resolve_input_props(
    video_url: str,
    captions: list[CaptionSegment],
    b_rolls: list[BRollEntry],
    style_preset: StylePreset,
    duration_seconds: float | None = None,
) -> dict:
    """Assemble the input-property bag handed to the render engine.

    ``durationInSeconds`` is only a hint and is omitted when not supplied,
    leaving the composition's own frame count in charge.
    """
    props = {
        "videoSrc": video_url,
        "captions": [c.model_dump(mode="json") for c in sorted(captions, key=lambda c: c.start)],
        "stylePreset": StylePreset(style_preset).value,
        "bRolls": [b.to_engine_props() for b in b_rolls],
    }
    if duration_seconds is not None and duration_seconds > 0:
        props["durationInSeconds"] = duration_seconds
    return props
