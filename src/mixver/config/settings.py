"""Configuration settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mixver.errors import ConfigValidationError, ErrorContext, VersionParseError
from mixver.mutators import (
    ClusterSettingMutator,
    Mutator,
    PreserveDowngradeOptionRandomizer,
    max_changes,
    minimum_version,
)
from mixver.mutators.cluster_settings import DEFAULT_MAX_CHANGES, DEFAULT_PROBABILITY
from mixver.versions import Version

DEFAULT_VERSIONS = ["v23.1.9", "v23.2.7", "v24.1.3", "v24.2.12"]


def _check_probability(v: float, field: str) -> float:
    if not 0.0 <= v <= 1.0:
        raise ValueError(f"{field} must be between 0.0 and 1.0, got {v}")
    return v


def _check_version(v: str) -> str:
    try:
        Version.parse(v)
    except VersionParseError as e:
        raise ValueError(f"Invalid version {v!r}, expected vMAJOR.MINOR.PATCH") from e
    return v


class ClusterSettingConfig(BaseModel):
    """One cluster setting to change at random points of the plan."""

    name: str
    values: list[Any]
    min_version: str | None = None
    max_changes: int = DEFAULT_MAX_CHANGES
    probability: float = DEFAULT_PROBABILITY

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cluster setting name cannot be empty")
        return v

    @field_validator("values")
    @classmethod
    def validate_values(cls, v: list[Any]) -> list[Any]:
        if not v:
            raise ValueError("cluster setting needs at least one possible value")
        return v

    @field_validator("min_version")
    @classmethod
    def validate_min_version(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return _check_version(v)

    @field_validator("max_changes")
    @classmethod
    def validate_max_changes(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_changes must be at least 1, got {v}")
        return v

    @field_validator("probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        return _check_probability(v, "probability")

    def build(self) -> ClusterSettingMutator:
        options = [max_changes(self.max_changes)]
        if self.min_version is not None:
            options.append(minimum_version(self.min_version))
        return ClusterSettingMutator(self.name, self.values, *options, probability=self.probability)


class MixverConfig(BaseSettings):
    """Configuration for mixver."""

    model_config = SettingsConfigDict(
        env_prefix="MIXVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    seed: int | None = Field(default=None, description="Seed for reproducible plans and mutations")
    versions: list[str] = Field(default_factory=lambda: list(DEFAULT_VERSIONS))
    nodes: int = 4
    verbose: bool = False
    randomize_downgrade_option: bool = True
    downgrade_option_probability: float = 0.3
    cluster_settings: list[ClusterSettingConfig] = Field(default_factory=list)

    @field_validator("versions")
    @classmethod
    def validate_versions(cls, v: list[str]) -> list[str]:
        if len(v) < 2:
            raise ValueError("versions needs at least two entries, oldest first")
        for text in v:
            _check_version(text)
        return v

    @field_validator("nodes")
    @classmethod
    def validate_nodes(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"nodes must be at least 1, got {v}")
        return v

    @field_validator("downgrade_option_probability")
    @classmethod
    def validate_downgrade_probability(cls, v: float) -> float:
        return _check_probability(v, "downgrade_option_probability")

    @field_validator("cluster_settings")
    @classmethod
    def validate_unique_settings(cls, v: list[ClusterSettingConfig]) -> list[ClusterSettingConfig]:
        # Two mutators on one setting would not see each other's SET/RESET steps.
        seen: set[str] = set()
        for cs in v:
            if cs.name in seen:
                raise ValueError(f"cluster setting {cs.name!r} is configured more than once")
            seen.add(cs.name)
        return v

    def parsed_versions(self) -> list[Version]:
        return [Version.parse(v) for v in self.versions]

    def with_overrides(self, **overrides: Any) -> MixverConfig:
        """Return a re-validated copy with ``overrides`` applied."""
        return _validated({**self.model_dump(), **overrides})

    def build_mutators(self) -> list[Mutator]:
        """Instantiate the mutators this configuration describes."""
        mutators: list[Mutator] = []
        if self.randomize_downgrade_option:
            mutators.append(PreserveDowngradeOptionRandomizer(probability=self.downgrade_option_probability))
        mutators.extend(cs.build() for cs in self.cluster_settings)
        return mutators


def _validated(data: dict[str, Any], path: Path | None = None) -> MixverConfig:
    """Build a MixverConfig, reporting the first invalid field as ConfigValidationError."""
    try:
        return MixverConfig(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        reason = first.get("ctx", {}).get("error") or first["msg"]
        extra: dict[str, Any] = {}
        if path is not None:
            extra["path"] = str(path)
        if e.error_count() > 1:
            extra["other errors"] = e.error_count() - 1
        raise ConfigValidationError(
            message=f"{field}: {reason}",
            field=field,
            value=first.get("input"),
            context=ErrorContext(extra=extra),
            cause=e,
        ) from e


def load_config(config_path: str | Path | None = None) -> MixverConfig:
    """Load configuration from file and environment.

    Priority: CLI args > env vars > config file > defaults

    Raises:
        ConfigValidationError: If the file is not a YAML mapping or a
            value fails validation.
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ConfigValidationError(
                message=f"{config_path} must contain a YAML mapping",
                value=config_data,
                context=ErrorContext(extra={"path": str(config_path)}),
            )

    config_data.update(_get_env_overrides())

    return _validated(config_data, config_path)


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_mappings = {
        "MIXVER_SEED": ("seed", int),
        "MIXVER_NODES": ("nodes", int),
        "MIXVER_VERBOSE": ("verbose", lambda x: x.lower() in ("true", "1", "yes")),
    }

    for env_key, (key, converter) in env_mappings.items():
        value = os.environ.get(env_key)
        if value is not None:
            overrides[key] = converter(value)

    return overrides
