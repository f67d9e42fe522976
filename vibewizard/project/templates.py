"""Reusable single-module templates stored as JSON.

A template captures one module's task type and task data together with the
language/style/target choices and project settings it was written for. It
is saved and loaded independently of a full project file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from rich.markup import escape

from vibewizard.project.errors import TemplateError
from vibewizard.project.models import (
    InitialConfig,
    MainTaskData,
    Module,
    ProgrammingLanguage,
    ProjectSettings,
    ProjectStyle,
    TargetOs,
    TaskType,
)
from vibewizard.utils import console, print_warning, sanitize_name

TEMPLATE_EXTENSION = ".json"


def _lenient_enum(enum_cls: type, value: Any, label: str) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        print_warning(f"Warning: Invalid {label}: {escape(str(value))}")
        return None


class ProjectTemplate(BaseModel):
    """Serializable template for one module.

    Unknown language, style, task type or target OS values are dropped with
    a warning instead of failing the whole template.
    """

    programming_language: Optional[ProgrammingLanguage] = None
    project_style: Optional[ProjectStyle] = None
    target_operating_systems: list[TargetOs] = Field(default_factory=list)
    task_type: Optional[TaskType] = None
    task_data: MainTaskData = Field(default_factory=MainTaskData)
    project_directory: Optional[Path] = None
    project_settings: ProjectSettings = Field(default_factory=ProjectSettings)

    @field_validator("programming_language", mode="before")
    @classmethod
    def _language(cls, value: Any) -> Any:
        return _lenient_enum(ProgrammingLanguage, value, "programming language")

    @field_validator("project_style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> Any:
        return _lenient_enum(ProjectStyle, value, "project style")

    @field_validator("task_type", mode="before")
    @classmethod
    def _task_type(cls, value: Any) -> Any:
        return _lenient_enum(TaskType, value, "task type")

    @field_validator("target_operating_systems", mode="before")
    @classmethod
    def _targets(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set, frozenset)):
            return value
        targets = []
        for item in value:
            target = _lenient_enum(TargetOs, item, "target OS")
            if target is not None and target not in targets:
                targets.append(target)
        return targets

    @field_validator("task_data", "project_settings", mode="before")
    @classmethod
    def _defaults_for_null(cls, value: Any, info) -> Any:
        if value is None:
            return MainTaskData() if info.field_name == "task_data" else ProjectSettings()
        return value

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_module(
        cls,
        module: Module,
        config: Optional[InitialConfig] = None,
        settings: Optional[ProjectSettings] = None,
    ) -> "ProjectTemplate":
        """Capture *module*'s task into a template."""
        kwargs: dict[str, Any] = {
            "task_type": module.task_type,
            "task_data": module.task_data.model_copy(deep=True),
        }
        if config is not None:
            kwargs.update(
                programming_language=config.programming_language,
                project_style=config.project_style,
                target_operating_systems=[
                    target for target in TargetOs if target in config.target_operating_systems
                ],
                project_directory=config.project_directory,
            )
        if settings is not None:
            kwargs["project_settings"] = settings.model_copy(deep=True)
        return cls(**kwargs)

    def apply_to(self, module: Module) -> None:
        """Copy the task type (when set) and task data into *module*."""
        if self.task_type is not None:
            module.task_type = self.task_type
        module.set_task_data(self.task_data.model_copy(deep=True))

    def default_file_name(self) -> str:
        """Suggested file name, e.g. ``create-module-template.json``."""
        stem = sanitize_name(self.task_type.value) if self.task_type else "module"
        return f"{stem}-template{TEMPLATE_EXTENSION}"

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, text: str) -> "ProjectTemplate":
        if not text or not text.strip():
            raise TemplateError("Template JSON must not be empty.")
        try:
            return cls.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise TemplateError(f"Invalid template: {exc}") from exc


def _with_extension(path: Path) -> Path:
    if path.suffix.lower() != TEMPLATE_EXTENSION:
        return path.with_name(path.name + TEMPLATE_EXTENSION)
    return path


def save_template(template: ProjectTemplate, path: str | Path) -> Path:
    """Write *template* to *path*, adding the ``.json`` extension if missing.

    Raises:
        TemplateError: If the file cannot be written.
    """
    target = _with_extension(Path(path))
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(template.to_json(), encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"Failed to save template to {target}: {exc}", target) from exc
    return target


def load_template(path: str | Path) -> ProjectTemplate:
    """Read a template from *path*.

    Raises:
        TemplateError: If the file is missing, unreadable or invalid.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateError(f"Failed to read template {source}: {exc}", source) from exc
    try:
        return ProjectTemplate.from_json(text)
    except TemplateError as exc:
        raise TemplateError(f"{source}: {exc}", source) from exc


class TemplateManager:
    """Saves and loads templates relative to a remembered directory.

    The directory starts at the configured templates folder and follows the
    location of the last successful save or load.
    """

    def __init__(self, templates_dir: str | Path):
        self.last_directory = Path(templates_dir)

    def suggest_path(self, template: ProjectTemplate) -> Path:
        return self.last_directory / template.default_file_name()

    def save(self, template: ProjectTemplate, path: str | Path | None = None) -> Path:
        target = save_template(template, path or self.suggest_path(template))
        self.last_directory = target.parent
        console.print(f"[green]Template saved to:[/green] {escape(str(target.resolve()))}")
        return target

    def load(self, path: str | Path) -> ProjectTemplate:
        source = Path(path)
        if not source.is_absolute():
            source = self.last_directory / source
        template = load_template(source)
        self.last_directory = source.parent
        return template

    def list_templates(self) -> list[Path]:
        """Template files in the current directory, sorted by name."""
        if not self.last_directory.is_dir():
            return []
        return sorted(self.last_directory.glob(f"*{TEMPLATE_EXTENSION}"))
