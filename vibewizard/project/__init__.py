"""Vibe Coding Wizard project model.

Hierarchical project/module tree with scoped variables, versioned JSON
persistence and reusable module templates.

Usage::

    from vibewizard.project import IDEProject, load_project, save_project

    project = IDEProject.from_initial_config(config)
    orders = project.new_module("Orders")
    project.new_module("Order Entry", parent=orders)
    save_project(project, "shop.vcp")
"""

from vibewizard.project.errors import (
    ModuleCycleError,
    NameConflictError,
    ProjectError,
    ProjectLoadError,
    ProjectPersistenceError,
    ProjectSaveError,
    ProjectValidationError,
    TemplateError,
    UnknownModuleError,
)
from vibewizard.project.models import (
    DialogDefinition,
    GlobalVariable,
    InitialConfig,
    MainTaskData,
    Module,
    ModuleVariable,
    ProgrammingLanguage,
    ProgramMode,
    ProjectMode,
    ProjectSettings,
    ProjectStyle,
    TargetOs,
    TaskType,
    WorkflowItem,
    WorkflowStep,
)
from vibewizard.project.persistence import load_project, save_project
from vibewizard.project.templates import ProjectTemplate, TemplateManager
from vibewizard.project.tree import IDEProject

__all__ = [
    # Tree
    "IDEProject",
    "Module",
    # Configuration and payload models
    "InitialConfig",
    "MainTaskData",
    "ProjectSettings",
    "DialogDefinition",
    "WorkflowItem",
    "WorkflowStep",
    "GlobalVariable",
    "ModuleVariable",
    # Enumerations
    "ProgrammingLanguage",
    "ProjectStyle",
    "TargetOs",
    "ProgramMode",
    "ProjectMode",
    "TaskType",
    # Persistence and templates
    "load_project",
    "save_project",
    "ProjectTemplate",
    "TemplateManager",
    # Errors
    "ProjectError",
    "ProjectValidationError",
    "NameConflictError",
    "ModuleCycleError",
    "UnknownModuleError",
    "ProjectPersistenceError",
    "ProjectLoadError",
    "ProjectSaveError",
    "TemplateError",
]
