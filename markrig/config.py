"""
markrig Configuration Management

Handles loading/saving of rig settings and exposes the calibration
thresholds as named options for the calibration session.
Uses Pydantic for validation and YAML for human-readable config files.
"""

from pathlib import Path
from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
import yaml


# Default paths
CONFIG_DIR = Path.home() / ".markrig"


class PatternConfig(BaseModel):
    """Calibration pattern settings."""
    type: Literal["chessboard", "charuco"] = "chessboard"

    # Chessboard: inner corners; ChArUco: squares
    rows: int = Field(6, gt=1)
    cols: int = Field(9, gt=1)
    square_length: float = Field(0.025, gt=0)  # meters

    # ChArUco only
    marker_length: float = Field(0.018, gt=0)  # meters
    dictionary: str = "DICT_6X6_250"


class CalibrationConfig(BaseModel):
    """Calibration session settings."""
    # Samples collected per camera and per camera pair before solving
    calibration_frames: int = Field(20, gt=0)
    # Framesets skipped between two detection attempts
    calibration_skip: int = Field(5, ge=0)

    pattern: PatternConfig = Field(default_factory=PatternConfig)

    class Config:
        validate_assignment = True


class TrackingConfig(BaseModel):
    """Marker tracking settings."""
    algorithm: Literal["template", "optical_flow"] = "template"

    # Template tracker
    template_radius: int = Field(12, gt=0)  # pixels, half-size of template
    search_radius: int = Field(32, gt=0)  # pixels, half-size of search window
    match_threshold: float = Field(0.6, ge=-1.0, le=1.0)  # min normalized correlation

    # Optical flow tracker
    flow_window: int = Field(21, gt=2)
    flow_levels: int = Field(3, ge=0)


class RigConfig(BaseSettings):
    """Main configuration container."""
    # Video sources, one per camera (device index or file path)
    cameras: List[str] = Field(default_factory=list)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)

    config_dir: Path = CONFIG_DIR

    class Config:
        env_prefix = "MARKRIG_"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "RigConfig":
        """Load configuration from YAML file."""
        if path is None:
            path = CONFIG_DIR / "config.yaml"

        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to YAML file."""
        if path is None:
            path = CONFIG_DIR / "config.yaml"

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            yaml.dump(self.model_dump(mode='json'), f, default_flow_style=False)


class Parameters:
    """
    Named-option view over a CalibrationConfig.

    The calibration session holds a reference to this object and re-reads
    its thresholds on every reset, so edits made between sessions take
    effect without rebuilding the session.
    """

    CALIBRATION_FRAMES = "CALIBRATION_FRAMES"
    CALIBRATION_SKIP = "CALIBRATION_SKIP"

    _FIELDS = {
        CALIBRATION_FRAMES: "calibration_frames",
        CALIBRATION_SKIP: "calibration_skip",
    }

    def __init__(self, config: Optional[CalibrationConfig] = None):
        self.config = config if config is not None else CalibrationConfig()

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._FIELDS)

    def get(self, name: str) -> int:
        """
        Get a named option.

        Raises:
            KeyError: Unknown option name
        """
        return getattr(self.config, self._FIELDS[name])

    def set(self, name: str, value: int) -> None:
        """
        Set a named option, validated against the config model.

        Raises:
            KeyError: Unknown option name
            pydantic.ValidationError: Value out of range
        """
        setattr(self.config, self._FIELDS[name], value)
