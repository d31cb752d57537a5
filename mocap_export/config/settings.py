"""
Export settings and configuration management.

Provides dataclasses for the configurable parts of the export pipeline,
loaded from and saved to YAML.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from mocap_export.core.exceptions import InputError


@dataclass
class SmoothingConfig:
    """Temporal smoothing configuration."""

    enabled: bool = True

    # Weight of the new sample (0.1 = very smooth, 0.9 = responsive)
    alpha: float = 0.5


@dataclass
class ExportConfig:
    """Configuration for BVH and rotation export."""

    # Assumed capture frame rate, written as the BVH frame time
    fps: float = 30.0

    # Meters to centimeters
    scale: float = 100.0

    # Captured positions are hip-relative; lift the root to standing height
    root_height_offset: float = 100.0

    clip_name: str = "MixamoMotion"

    # Write rotation tracks for head, hands and feet too
    leaf_rotation_tracks: bool = False


@dataclass
class Settings:
    """Main export configuration."""

    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Settings":
        """Create from dictionary, ignoring unknown keys."""
        settings = cls()
        if not data:
            return settings

        if "smoothing" in data:
            settings.smoothing = SmoothingConfig(**_known(SmoothingConfig, data["smoothing"]))
        if "export" in data:
            settings.export = ExportConfig(**_known(ExportConfig, data["export"]))

        return settings

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load configuration from YAML file."""
        return cls.from_dict(read_yaml(path))

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate configuration and return list of problems."""
        issues = []

        if not 0.0 < self.smoothing.alpha <= 1.0:
            issues.append(f"smoothing.alpha must be in (0, 1], got {self.smoothing.alpha}")

        if self.export.fps <= 0:
            issues.append(f"export.fps must be positive, got {self.export.fps}")

        if self.export.scale <= 0:
            issues.append(f"export.scale must be positive, got {self.export.scale}")

        if not self.export.clip_name:
            issues.append("export.clip_name must not be empty")

        return issues


def read_yaml(path: Path) -> dict:
    """
    Read a configuration document.

    Returns:
        The parsed mapping (empty for an empty file)

    Raises:
        InputError: If the file is not valid YAML or not a mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise InputError(f"{path} is not a valid configuration file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InputError(f"{path} must contain a mapping of configuration sections")
    return data


def _known(config_class, data: Optional[dict]) -> dict:
    if not data:
        return {}
    fields = config_class.__dataclass_fields__
    return {k: v for k, v in data.items() if k in fields}
