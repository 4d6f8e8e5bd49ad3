"""
cadence.config - YAML config loading, profile merging, validation.

Handles loading cadence.yaml, applying profile defaults, and validating
all analysis parameters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from cadence.exceptions import ConfigError

CONFIG_FILENAME = "cadence.yaml"


class SegmentationSettings(BaseModel):
    """Window sizes and energy thresholds for speech/silence detection."""

    speech_window_seconds: float = Field(default=0.02, gt=0.0)
    speech_energy_threshold: float = Field(default=0.001, ge=0.0)
    silence_window_seconds: float = Field(default=0.01, gt=0.0)
    silence_energy_threshold: float = Field(default=0.01, ge=0.0)
    min_pause_seconds: float = Field(default=0.2, ge=0.0)


class PitchSettings(BaseModel):
    """Autocorrelation pitch search parameters."""

    window_seconds: float = Field(default=0.02, gt=0.0)
    min_hz: float = Field(default=80.0, gt=0.0)
    max_hz: float = Field(default=800.0, gt=0.0)
    peak_tolerance: float = Field(default=0.9, gt=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_range(self) -> PitchSettings:
        if self.max_hz <= self.min_hz:
            raise ValueError("max_hz must be greater than min_hz")
        return self


class AnalysisConfig(BaseModel):
    """Resolved configuration for delivery analysis."""

    profile: str = "standard"

    sample_rate: int = Field(default=44100, gt=0)
    spectral_frame_size: int = Field(default=1024, ge=2)
    extract_backend: str = "ffmpeg"

    segmentation: SegmentationSettings = Field(default_factory=SegmentationSettings)
    pitch: PitchSettings = Field(default_factory=PitchSettings)

    config_path: Path | None = None

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, v: str, info: ValidationInfo) -> str:
        valid = set(BUILTIN_PROFILES) | set((info.context or {}).get("custom_profiles", ()))
        if v not in valid:
            raise ValueError(f"profile must be one of: {sorted(valid)}")
        return v

    @field_validator("extract_backend")
    @classmethod
    def validate_extract_backend(cls, v: str) -> str:
        valid = {"ffmpeg", "librosa"}
        if v not in valid:
            raise ValueError(f"extract_backend must be one of: {valid}")
        return v


BUILTIN_PROFILES: dict[str, dict[str, Any]] = {
    "standard": {
        "segmentation": {
            "speech_energy_threshold": 0.001,
            "silence_energy_threshold": 0.01,
            "min_pause_seconds": 0.2,
        },
    },
    "noisy-room": {
        "segmentation": {
            "speech_energy_threshold": 0.004,
            "silence_energy_threshold": 0.02,
            "min_pause_seconds": 0.25,
        },
    },
}


def load_profile(name: str, profiles_dir: Path | None = None) -> dict[str, Any]:
    """Load a profile by name, checking custom profiles first."""
    if profiles_dir and profiles_dir.exists():
        profile_file = profiles_dir / f"{name}.yaml"
        if profile_file.exists():
            with open(profile_file) as f:
                return yaml.safe_load(f) or {}
    if name in BUILTIN_PROFILES:
        return _copy_nested(BUILTIN_PROFILES[name])
    raise ConfigError(f"Unknown profile: {name}")


def list_custom_profiles(profiles_dir: Path | None) -> list[str]:
    """Names of the <name>.yaml profiles in profiles_dir."""
    if not profiles_dir or not profiles_dir.is_dir():
        return []
    return sorted(p.stem for p in profiles_dir.glob("*.yaml"))


def merge_config(project_config: dict[str, Any], profile: dict[str, Any]) -> dict[str, Any]:
    """Merge project config with profile defaults. Project config takes precedence."""
    merged = _copy_nested(profile)
    for key, value in project_config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(value, merged[key])
        elif value is not None:
            merged[key] = value
    return merged


def _copy_nested(data: dict[str, Any]) -> dict[str, Any]:
    return {k: _copy_nested(v) if isinstance(v, dict) else v for k, v in data.items()}


def find_config_file(start: Path | None = None) -> Path | None:
    """Find cadence.yaml by walking up from start (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(config_path: Path) -> AnalysisConfig:
    """Load and validate configuration from a cadence.yaml file.

    A directory may be passed instead of a file; cadence.yaml inside it is used.
    """
    config_file = config_path / CONFIG_FILENAME if config_path.is_dir() else config_path
    if not config_file.exists():
        raise FileNotFoundError(f"No {CONFIG_FILENAME} found at {config_path}")

    with open(config_file) as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    profile_name = raw_config.get("profile", "standard")
    profiles_dir = config_file.parent / "profiles"
    profile = load_profile(profile_name, profiles_dir if profiles_dir.exists() else None)

    if "inherits" in profile:
        parent = load_profile(
            profile.pop("inherits"), profiles_dir if profiles_dir.exists() else None
        )
        profile = merge_config(profile, parent)

    merged = merge_config(raw_config, profile)
    merged["config_path"] = config_file

    return AnalysisConfig.model_validate(
        merged, context={"custom_profiles": list_custom_profiles(profiles_dir)}
    )


def create_default_config(profile: str = "standard") -> dict[str, Any]:
    """Create a default config dict for a new cadence.yaml."""
    defaults: dict[str, Any] = {
        "profile": profile,
        "sample_rate": 44100,
        "spectral_frame_size": 1024,
        "extract_backend": "ffmpeg",
    }
    if profile in BUILTIN_PROFILES:
        defaults = merge_config(defaults, BUILTIN_PROFILES[profile])
    return defaults


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
