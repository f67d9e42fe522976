"""Pydantic v2 models for the Vibe Coding Wizard project model.

Defines the enumerations, the per-module task payload, scoped variables, the
project-wide settings and the immutable initial configuration. The tree
aggregate that owns modules lives in :mod:`vibewizard.project.tree`.
"""

from __future__ import annotations

import uuid
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from vibewizard.project.errors import ProjectValidationError
from vibewizard.utils import normalize_key


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProgrammingLanguage(str, Enum):
    """Target programming language of the generated project."""
    CSHARP = "CSHARP"
    CPP = "CPP"
    JAVA = "JAVA"
    PYTHON = "PYTHON"
    PHP = "PHP"
    RUST = "RUST"
    GO = "GO"
    JAVASCRIPT = "JAVASCRIPT"
    RUBY = "RUBY"

    @property
    def display_name(self) -> str:
        return _LANGUAGE_NAMES[self]


_LANGUAGE_NAMES: dict[ProgrammingLanguage, str] = {
    ProgrammingLanguage.CSHARP: "C# (DotNET 9.0)",
    ProgrammingLanguage.CPP: "C++",
    ProgrammingLanguage.JAVA: "Java",
    ProgrammingLanguage.PYTHON: "Python",
    ProgrammingLanguage.PHP: "PHP",
    ProgrammingLanguage.RUST: "Rust",
    ProgrammingLanguage.GO: "Go",
    ProgrammingLanguage.JAVASCRIPT: "JavaScript",
    ProgrammingLanguage.RUBY: "Ruby",
}


class ProjectStyle(str, Enum):
    """Kind of application being generated."""
    WEB = "WEB"
    GUI = "GUI"
    SCRIPT = "SCRIPT"

    @property
    def display_name(self) -> str:
        return {"WEB": "Web", "GUI": "GUI", "SCRIPT": "Script"}[self.value]


class TargetOs(str, Enum):
    """Operating systems the generated project must run on."""
    WINDOWS = "WINDOWS"
    LINUX = "LINUX"
    MACOS = "MACOS"

    @property
    def display_name(self) -> str:
        return {"WINDOWS": "Windows", "LINUX": "Linux", "MACOS": "macOS"}[self.value]


class ProgramMode(str, Enum):
    """Start-up behaviour of GUI applications."""
    MAIN_WINDOW = "MAIN_WINDOW"
    MDI = "MDI"

    @property
    def display_name(self) -> str:
        return {"MAIN_WINDOW": "Main Window", "MDI": "MDI"}[self.value]

    @property
    def description(self) -> str:
        if self is ProgramMode.MDI:
            return (
                "An MDI window will be shown at program start, allowing modules "
                "to be launched individually via menu"
            )
        return "The main window of the main module will be loaded at program start"


class ProjectMode(str, Enum):
    """Full IDE project versus a guided single-purpose wizard project."""
    IDE = "IDE"
    WIZARD = "WIZARD"

    @property
    def display_name(self) -> str:
        if self is ProjectMode.IDE:
            return "IDE Mode (Complex Projects)"
        return "Wizard Mode (Simple Projects)"

    @property
    def description(self) -> str:
        if self is ProjectMode.IDE:
            return "For complex multi-module projects with advanced features"
        return "For simple single-purpose projects with guided setup"


class TaskType(str, Enum):
    """Closed set of work categories a module can represent."""
    GENERATE_APP_OR_SCRIPT = "GENERATE_APP_OR_SCRIPT"
    FIX_CODING_ERRORS = "FIX_CODING_ERRORS"
    CREATE_MODULE = "CREATE_MODULE"
    CREATE_ALGORITHM = "CREATE_ALGORITHM"
    MODIFY_EXISTING_SOFTWARE = "MODIFY_EXISTING_SOFTWARE"

    @property
    def display_name(self) -> str:
        return _TASK_NAMES[self]


_TASK_NAMES: dict[TaskType, str] = {
    TaskType.GENERATE_APP_OR_SCRIPT: "Generate or modify existing VCA app",
    TaskType.FIX_CODING_ERRORS: "Fix coding errors",
    TaskType.CREATE_MODULE: "Create module",
    TaskType.CREATE_ALGORITHM: "Create algorithm",
    TaskType.MODIFY_EXISTING_SOFTWARE: "Modify existing, unknown software",
}


def _empty_list_if_none(value: Any) -> Any:
    # Files written by older versions store missing lists as null.
    return [] if value is None else value


# ---------------------------------------------------------------------------
# Workflow & Dialog Models
# ---------------------------------------------------------------------------

class WorkflowStep(BaseModel):
    """A single step of a workflow item."""
    description: str = Field(default="", description="What happens in this step")
    requirements: str = Field(default="", description="Precondition for the step")
    stop_if_requirement_not_met: bool = Field(default=False)
    wait_for_requirement: bool = Field(default=False)


class WorkflowItem(BaseModel):
    """A named workflow attached to a window and a trigger."""
    name: str = Field(default="", description="Workflow name")
    window_affected: str = Field(default="", description="Dialog the workflow runs in")
    trigger: str = Field(default="", description="Event that starts the workflow")
    steps: list[WorkflowStep] = Field(default_factory=list)

    _none_lists = field_validator("steps", mode="before")(_empty_list_if_none)


class DialogDefinition(BaseModel):
    """Immutable description of a window/dialog owned by a module."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique dialog name inside the module")
    window_title: str = Field(default="")
    description: str = Field(default="")
    modal: bool = Field(default=False)
    form_layout_json: Optional[str] = Field(
        default=None, description="Serialized layout from the form editor"
    )
    show_in_mdi_menu: bool = Field(default=True)

    def with_name(self, name: str) -> "DialogDefinition":
        return self.model_copy(update={"name": name})

    def with_window_title(self, window_title: str) -> "DialogDefinition":
        return self.model_copy(update={"window_title": window_title})

    def with_description(self, description: str) -> "DialogDefinition":
        return self.model_copy(update={"description": description})

    def with_modal(self, modal: bool) -> "DialogDefinition":
        return self.model_copy(update={"modal": modal})

    def with_form_layout_json(self, form_layout_json: Optional[str]) -> "DialogDefinition":
        return self.model_copy(update={"form_layout_json": form_layout_json})

    def with_show_in_mdi_menu(self, show_in_mdi_menu: bool) -> "DialogDefinition":
        return self.model_copy(update={"show_in_mdi_menu": show_in_mdi_menu})


# ---------------------------------------------------------------------------
# Task Data
# ---------------------------------------------------------------------------

class MainTaskData(BaseModel):
    """Free-form payload edited by the task forms of a module."""
    project_overview: Optional[str] = None
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None
    error_details: Optional[str] = None
    workflow_items: list[WorkflowItem] = Field(default_factory=list)
    dialogs: list[DialogDefinition] = Field(default_factory=list)
    algorithm_description: Optional[str] = None
    change_description: Optional[str] = None
    involved_files: Optional[str] = None
    theme_description: Optional[str] = None
    main_window_name: Optional[str] = Field(
        default=None, description="Dialog shown when the module is loaded"
    )

    _none_lists = field_validator("workflow_items", "dialogs", mode="before")(
        _empty_list_if_none
    )

    def copy_from(self, other: Optional["MainTaskData"]) -> None:
        """Overwrite every field with a deep copy of *other*'s values."""
        if other is None:
            return
        for name, value in other.model_copy(deep=True):
            setattr(self, name, value)

    def clear(self) -> None:
        """Reset every field to its default."""
        self.copy_from(MainTaskData())

    def find_dialog(self, name: str) -> Optional[DialogDefinition]:
        key = normalize_key(name)
        for dialog in self.dialogs:
            if normalize_key(dialog.name) == key:
                return dialog
        return None


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

class GlobalVariable(BaseModel):
    """A project-wide name/value pair available to every module."""
    name: str = Field(default="")
    value: str = Field(default="")

    def __str__(self) -> str:
        return self.name if self.name.strip() else "(unnamed variable)"


class ModuleVariable(BaseModel):
    """A name/value pair scoped to a single module."""
    name: str = Field(default="")
    value: str = Field(default="")

    def __str__(self) -> str:
        return self.name if self.name.strip() else "(unnamed variable)"


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

def _new_module_id() -> str:
    return str(uuid.uuid4())


class Module(BaseModel):
    """A node in the project's task hierarchy.

    Modules only hold ids of their children and parent; the owning
    :class:`~vibewizard.project.tree.IDEProject` resolves them. Use the
    project's tree operations rather than editing ``child_ids`` directly.
    """
    id: str = Field(default_factory=_new_module_id, frozen=True)
    name: str = Field(..., description="Display name, unique across the project")
    task_type: TaskType = Field(default=TaskType.GENERATE_APP_OR_SCRIPT)
    task_data: MainTaskData = Field(default_factory=MainTaskData)
    child_ids: list[str] = Field(default_factory=list)
    parent_id: Optional[str] = Field(default=None, exclude=True)
    main_window_name: Optional[str] = Field(default=None)
    variables: list[ModuleVariable] = Field(default_factory=list)

    _none_lists = field_validator("child_ids", "variables", mode="before")(
        _empty_list_if_none
    )

    def __str__(self) -> str:
        return self.name

    def set_task_data(self, task_data: MainTaskData) -> None:
        """Replace the task payload and keep the main window in sync.

        An explicit main window in the payload wins. Otherwise, if this
        module has no main window yet, the first dialog is promoted and
        written back into the payload.
        """
        self.task_data = task_data
        if task_data.main_window_name is not None:
            self.main_window_name = task_data.main_window_name
        elif task_data.dialogs and self.main_window_name is None:
            self.main_window_name = task_data.dialogs[0].name
            task_data.main_window_name = self.main_window_name

    def set_main_window(self, name: Optional[str]) -> None:
        """Designate one of this module's dialogs as its main window."""
        if name is not None and self.task_data.find_dialog(name) is None:
            raise ProjectValidationError(
                f"Module '{self.name}' has no dialog named '{name}'."
            )
        self.main_window_name = name
        self.task_data.main_window_name = name

    def find_variable(self, name: str) -> Optional[ModuleVariable]:
        key = normalize_key(name)
        for variable in self.variables:
            if normalize_key(variable.name) == key:
                return variable
        return None


# ---------------------------------------------------------------------------
# Project Settings
# ---------------------------------------------------------------------------

class ProjectSettings(BaseModel):
    """Project-wide workflows, global variables and database description."""
    project_workflows: list[WorkflowItem] = Field(default_factory=list)
    global_variables: list[GlobalVariable] = Field(default_factory=list)
    database_description: str = Field(default="")
    database_definition_file: Optional[Path] = Field(
        default=None, description="Schema file; stored as a plain string on disk"
    )
    project_name: str = Field(default="")
    project_path: str = Field(default="")

    _none_lists = field_validator("project_workflows", "global_variables", mode="before")(
        _empty_list_if_none
    )

    @field_validator("database_description", "project_name", "project_path", mode="before")
    @classmethod
    def _empty_string_if_none(cls, value: Any) -> Any:
        return "" if value is None else value

    def clear(self) -> None:
        """Reset all settings to their empty state."""
        self.project_workflows = []
        self.global_variables = []
        self.database_description = ""
        self.database_definition_file = None
        self.project_name = ""
        self.project_path = ""

    def find_global_variable(self, name: str) -> Optional[GlobalVariable]:
        key = normalize_key(name)
        for variable in self.global_variables:
            if normalize_key(variable.name) == key:
                return variable
        return None


# ---------------------------------------------------------------------------
# Initial Configuration
# ---------------------------------------------------------------------------

class InitialConfig(BaseModel):
    """Immutable snapshot of the choices made on the wizard's first page."""
    model_config = ConfigDict(frozen=True)

    programming_language: ProgrammingLanguage
    project_style: ProjectStyle
    target_operating_systems: frozenset[TargetOs]
    project_directory: Optional[Path] = None
    program_mode: ProgramMode = ProgramMode.MAIN_WINDOW
    project_name: Optional[str] = None
    ide_or_wizard_mode: ProjectMode = ProjectMode.WIZARD

    @field_validator("target_operating_systems")
    @classmethod
    def _require_target(cls, value: frozenset[TargetOs]) -> frozenset[TargetOs]:
        if not value:
            raise ValueError("at least one target operating system is required")
        return value

    @field_validator("program_mode", mode="before")
    @classmethod
    def _default_program_mode(cls, value: Any) -> Any:
        return ProgramMode.MAIN_WINDOW if value is None else value

    @field_validator("ide_or_wizard_mode", mode="before")
    @classmethod
    def _default_project_mode(cls, value: Any) -> Any:
        return ProjectMode.WIZARD if value is None else value

    @field_serializer("target_operating_systems")
    def _serialize_targets(self, value: frozenset[TargetOs]) -> list[str]:
        return [target.value for target in TargetOs if target in value]

    def targets(self, target: TargetOs) -> bool:
        """Return True if *target* is among the configured operating systems."""
        return target in self.target_operating_systems
