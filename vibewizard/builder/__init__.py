"""Vibe Coding Wizard build orchestration.

Turns a project's language/style/target choices into concrete build and run
commands and executes them with streamed output.

Key classes:
    BuildPlan       - Ordered command invocations plus a description
    ProcessRunner   - Async subprocess spawning, streaming and interaction
    ProcessResult   - Exit code, captured output and timing of one process
    BuildExecutor   - Runs a BuildPlan or run command and reports the outcome
"""

from .executor import BuildExecutor, BuildExecutorError
from .output_dirs import get_output_directory, get_output_directory_description
from .planner import BuildPlan, get_run_command, plan, plan_for_config
from .process_runner import (
    InteractiveProcess,
    ProcessInterruptedError,
    ProcessResult,
    ProcessRunner,
    ProcessRunnerError,
    ProcessSpawnError,
)
from .toolchain import PackageManager, check_toolchain, detect_package_manager

__all__ = [
    # Planning
    "BuildPlan",
    "plan",
    "plan_for_config",
    "get_run_command",
    # Process execution
    "ProcessRunner",
    "ProcessResult",
    "InteractiveProcess",
    "ProcessRunnerError",
    "ProcessSpawnError",
    "ProcessInterruptedError",
    # Build execution
    "BuildExecutor",
    "BuildExecutorError",
    # Output directories
    "get_output_directory",
    "get_output_directory_description",
    # Toolchain probing
    "PackageManager",
    "check_toolchain",
    "detect_package_manager",
]
