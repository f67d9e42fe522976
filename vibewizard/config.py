"""Vibe Coding Wizard configuration.

Centralised, typed configuration for the project model and the build
orchestration layer. All settings use Pydantic v2 models so they can be
validated at construction time and serialised to/from JSON or environment
variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

WINE_ENV_OVERRIDES: dict[str, str] = {"WINEDEBUG": "-all"}


def _default_templates_dir() -> Path:
    return Path.home() / ".vibe-coding-wizard" / "templates"


class ProcessConfig(BaseModel):
    """Settings applied to every spawned build/run process."""

    timeout: Optional[float] = Field(
        default=None, gt=0, description="Wall-clock limit in seconds; None waits forever"
    )
    env_overrides: dict[str, str] = Field(
        default_factory=lambda: dict(WINE_ENV_OVERRIDES),
        description="Environment variables layered on top of os.environ",
    )
    read_chunk_size: int = Field(
        default=1024, ge=1, description="Bytes read per call in streaming mode"
    )


class BuildConfig(BaseModel):
    """Tuning knobs for the build planner and executor."""

    host_os: Optional[str] = Field(
        default=None, description="Host OS name override; None detects via platform.system()"
    )
    stop_on_first_failure: bool = Field(
        default=True, description="Abort a multi-command plan at the first non-zero exit"
    )


class WizardConfig(BaseModel):
    """Global wizard configuration.

    Instances are typically created once by the CLI entry point (or the
    embedding UI) and then passed into the builder and template helpers.
    """

    templates_dir: Path = Field(default_factory=_default_templates_dir)
    project_extension: str = Field(default=".vcp")
    template_extension: str = Field(default=".json")
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "WizardConfig":
        """Load a previously-saved configuration from JSON.

        Missing keys fall back to their defaults.
        """
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "WizardConfig":
        """Build a ``WizardConfig`` from environment variables.

        Recognised variables (all optional):
            VCW_TEMPLATES_DIR, VCW_PROCESS_TIMEOUT, VCW_READ_CHUNK_SIZE,
            VCW_HOST_OS.
        """
        process_kwargs: dict[str, Any] = {}
        if os.environ.get("VCW_PROCESS_TIMEOUT"):
            process_kwargs["timeout"] = float(os.environ["VCW_PROCESS_TIMEOUT"])
        if os.environ.get("VCW_READ_CHUNK_SIZE"):
            process_kwargs["read_chunk_size"] = int(os.environ["VCW_READ_CHUNK_SIZE"])

        build_kwargs: dict[str, Any] = {}
        if os.environ.get("VCW_HOST_OS"):
            build_kwargs["host_os"] = os.environ["VCW_HOST_OS"]

        kwargs: dict[str, Any] = {
            "process": ProcessConfig(**process_kwargs),
            "build": BuildConfig(**build_kwargs),
        }
        if os.environ.get("VCW_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["VCW_TEMPLATES_DIR"])

        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create the templates directory if it does not exist yet."""
        self.templates_dir.mkdir(parents=True, exist_ok=True)
