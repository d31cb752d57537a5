"""
JSON storage for landmark sequences.

The capture front end records one document per video:

    {
      "fps": 30.0,
      "frames": [
        {"timestamp": 0.0,
         "landmarks": [{"x": 0.1, "y": -0.5, "z": 0.02, "visibility": 0.99}, ...]},
        ...
      ]
    }

Landmarks may also be written as bare [x, y, z] or [x, y, z, visibility]
lists. A document that is just the list of frames is accepted as well.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from mocap_export.core.exceptions import InputError
from mocap_export.core.types import Frame, Landmark

logger = logging.getLogger(__name__)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        return super().default(obj)


def _parse_landmark(raw: Any, frame_index: int, landmark_index: int) -> Landmark:
    try:
        if isinstance(raw, dict):
            visibility = raw.get("visibility")
            return Landmark(
                float(raw["x"]),
                float(raw["y"]),
                float(raw["z"]),
                None if visibility is None else float(visibility),
            )
        values = list(raw)
        if len(values) not in (3, 4):
            raise ValueError(f"expected 3 or 4 values, got {len(values)}")
        visibility = float(values[3]) if len(values) == 4 and values[3] is not None else None
        return Landmark(float(values[0]), float(values[1]), float(values[2]), visibility)
    except (KeyError, TypeError, ValueError) as e:
        raise InputError(
            f"Invalid landmark {landmark_index} in frame {frame_index}: {e}"
        ) from e


def frames_from_dict(data: Any) -> List[Frame]:
    """
    Parse frames from a decoded JSON document.

    Raises:
        InputError: If the document does not describe a frame sequence
    """
    if isinstance(data, dict):
        if "frames" not in data:
            raise InputError("Landmark document has no 'frames' entry")
        raw_frames = data["frames"]
    else:
        raw_frames = data

    if not isinstance(raw_frames, list):
        raise InputError("'frames' must be a list")

    frames = []
    for i, raw in enumerate(raw_frames):
        if not isinstance(raw, dict) or "timestamp" not in raw or "landmarks" not in raw:
            raise InputError(f"Frame {i} needs 'timestamp' and 'landmarks'")
        try:
            timestamp = float(raw["timestamp"])
        except (TypeError, ValueError) as e:
            raise InputError(f"Invalid timestamp in frame {i}: {e}") from e

        landmarks = tuple(
            _parse_landmark(lm, i, j) for j, lm in enumerate(raw["landmarks"])
        )
        frames.append(Frame(timestamp=timestamp, landmarks=landmarks))

    return frames


def frames_to_dict(frames: Sequence[Frame], fps: Optional[float] = None) -> Dict[str, Any]:
    """Serialize frames to a JSON-compatible dictionary."""
    data: Dict[str, Any] = {}
    if fps is not None:
        data["fps"] = fps

    serialized = []
    for frame in frames:
        landmarks = []
        for lm in frame.landmarks:
            entry = {"x": lm.x, "y": lm.y, "z": lm.z}
            if lm.visibility is not None:
                entry["visibility"] = lm.visibility
            landmarks.append(entry)
        serialized.append({"timestamp": frame.timestamp, "landmarks": landmarks})

    data["frames"] = serialized
    return data


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InputError(f"{path} is not valid JSON: {e}") from e


def load_frames(path: Path) -> List[Frame]:
    """
    Load a landmark sequence from a JSON file.

    Args:
        path: Path to the JSON document

    Returns:
        Frames in file order

    Raises:
        InputError: If the file is not valid JSON or not a frame sequence
    """
    path = Path(path)
    frames = frames_from_dict(_read_json(path))
    logger.info(f"Loaded {len(frames)} frames from {path}")
    return frames


def load_fps(path: Path) -> Optional[float]:
    """Frame rate recorded in a landmark document, if any."""
    path = Path(path)
    data = _read_json(path)
    if not isinstance(data, dict) or data.get("fps") is None:
        return None
    try:
        return float(data["fps"])
    except (TypeError, ValueError) as e:
        raise InputError(f"Invalid fps in {path}: {e}") from e


def save_frames(
    frames: Sequence[Frame],
    path: Path,
    fps: Optional[float] = None,
    pretty_print: bool = True,
) -> Path:
    """
    Save a landmark sequence as JSON.

    Args:
        frames: Frames to save
        path: Output file path
        fps: Optional frame rate to record
        pretty_print: Indent the output for readability

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            frames_to_dict(frames, fps),
            f,
            cls=NumpyEncoder,
            indent=2 if pretty_print else None,
        )

    return path
