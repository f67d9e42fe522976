"""Shared pytest fixtures for the Vibe Coding Wizard test suite.

Provides reusable fixtures for:
- Temporary project directories
- Initial configurations and a populated module tree
- Saved ``.vcp`` project files
- Python-interpreter commands for real-process tests
- Mock process runners for executor tests
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from vibewizard.builder.process_runner import ProcessResult, ProcessRunner
from vibewizard.project.models import (
    DialogDefinition,
    GlobalVariable,
    InitialConfig,
    MainTaskData,
    ModuleVariable,
    ProgrammingLanguage,
    ProjectStyle,
    TargetOs,
    TaskType,
)
from vibewizard.project.persistence import save_project
from vibewizard.project.tree import IDEProject


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def initial_config(tmp_project_dir: Path) -> InitialConfig:
    """C# GUI project targeting Windows and Linux."""
    return InitialConfig(
        programming_language=ProgrammingLanguage.CSHARP,
        project_style=ProjectStyle.GUI,
        target_operating_systems=frozenset({TargetOs.WINDOWS, TargetOs.LINUX}),
        project_directory=tmp_project_dir,
        project_name="Shop",
    )


@pytest.fixture
def make_config(tmp_project_dir: Path):
    """Factory for InitialConfig instances with sensible defaults.

    Usage:
        def test_plan(make_config):
            config = make_config(ProgrammingLanguage.RUST, targets={TargetOs.LINUX})
    """
    def factory(
        language: ProgrammingLanguage = ProgrammingLanguage.PYTHON,
        style: ProjectStyle = ProjectStyle.SCRIPT,
        targets: set[TargetOs] | None = None,
        **kwargs: Any,
    ) -> InitialConfig:
        return InitialConfig(
            programming_language=language,
            project_style=style,
            target_operating_systems=frozenset(targets or {TargetOs.LINUX}),
            project_directory=kwargs.pop("project_directory", tmp_project_dir),
            **kwargs,
        )

    return factory


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_project(initial_config: InitialConfig) -> IDEProject:
    """Project with a small module tree, variables and dialogs.

    Layout::

        Orders (main)
          Order Entry
          Order History
        Reporting
    """
    project = IDEProject.from_initial_config(initial_config)

    orders = project.new_module("Orders", TaskType.GENERATE_APP_OR_SCRIPT)
    entry = project.new_module("Order Entry", TaskType.CREATE_MODULE, parent=orders)
    project.new_module("Order History", TaskType.CREATE_MODULE, parent=orders)
    project.new_module("Reporting", TaskType.CREATE_ALGORITHM)
    project.set_main_module(orders)

    orders.set_task_data(
        MainTaskData(
            project_overview="Order management for a small shop",
            dialogs=[
                DialogDefinition(name="MainWindow", window_title="Orders"),
                DialogDefinition(name="Settings", modal=True),
            ],
        )
    )
    entry.variables.append(ModuleVariable(name="maxItems", value="50"))
    project.project_settings.global_variables.append(
        GlobalVariable(name="currency", value="EUR")
    )
    project.project_settings.database_definition_file = Path("schema") / "shop.sql"
    return project


@pytest.fixture
def sample_project_file(sample_project: IDEProject, tmp_path: Path) -> Path:
    """The sample project saved as a ``.vcp`` file."""
    return save_project(sample_project, tmp_path / "shop.vcp")


# ---------------------------------------------------------------------------
# Processes
# ---------------------------------------------------------------------------

@pytest.fixture
def python_command():
    """Build an argument vector that runs *code* in the current interpreter.

    Usage:
        def test_exit(python_command):
            cmd = python_command("import sys; sys.exit(3)")
    """
    def factory(code: str) -> list[str]:
        return [sys.executable, "-c", code]

    return factory


@pytest.fixture
def mock_runner():
    """ProcessRunner double whose streaming calls return queued results.

    Usage:
        def test_build(mock_runner):
            runner = mock_runner(ProcessResult(exit_code=0))
            executor = BuildExecutor(runner)
    """
    def factory(*results: ProcessResult, lines: list[str] | None = None) -> MagicMock:
        runner = MagicMock(spec=ProcessRunner)
        queue = list(results) or [ProcessResult(exit_code=0)]

        async def stream(command, cwd=None, stdin=None, on_output=None, **kwargs):
            for line in lines or []:
                if on_output is not None:
                    on_output(line)
            result = queue.pop(0) if len(queue) > 1 else queue[0]
            return ProcessResult(
                exit_code=result.exit_code,
                output=result.output,
                command=list(command),
                duration_seconds=result.duration_seconds,
            )

        runner.run_with_streaming = AsyncMock(side_effect=stream)
        return runner

    return factory
