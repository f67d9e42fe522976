"""Execution of build plans and run commands.

``BuildExecutor`` sits between the planner and the process runner: it
announces the plan, streams every command's output to a sink, and reports
the outcome with Rich panels.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from vibewizard.builder.output_dirs import (
    get_output_directory,
    get_output_directory_description,
)
from vibewizard.builder.planner import BuildPlan, get_run_command, plan_for_config
from vibewizard.builder.process_runner import (
    OutputCallback,
    ProcessResult,
    ProcessRunner,
)
from vibewizard.config import WizardConfig
from vibewizard.project.models import InitialConfig
from vibewizard.utils import console, format_command, format_duration


class BuildExecutorError(Exception):
    """Raised when a plan or run command cannot be executed at all."""


def _console_sink(line: str) -> None:
    console.print(f"  {line}", style="dim", markup=False, highlight=False)


class BuildExecutor:
    """Runs build plans and run commands through a :class:`ProcessRunner`.

    Args:
        runner: Process runner to use; a default one is created if omitted.
        stop_on_first_failure: Abort a plan at the first non-zero exit.
        host_os: Host OS override passed to the planner.
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        stop_on_first_failure: bool = True,
        host_os: Optional[str] = None,
    ):
        self.runner = runner or ProcessRunner()
        self.stop_on_first_failure = stop_on_first_failure
        self.host_os = host_os

    @classmethod
    def from_config(cls, config: WizardConfig) -> "BuildExecutor":
        return cls(
            runner=ProcessRunner.from_config(config.process),
            stop_on_first_failure=config.build.stop_on_first_failure,
            host_os=config.build.host_os,
        )

    @staticmethod
    def _resolve_cwd(cwd: Optional[str | Path], config: Optional[InitialConfig]) -> Optional[Path]:
        directory = cwd if cwd is not None else (config.project_directory if config else None)
        if directory is None:
            return None
        path = Path(directory)
        if not path.is_dir():
            raise BuildExecutorError(f"Working directory not found: {path}")
        return path

    async def execute(
        self,
        build_plan: BuildPlan,
        cwd: Optional[str | Path] = None,
        on_output: Optional[OutputCallback] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ProcessResult:
        """Run every command of *build_plan* in order.

        Output lines go to *on_output* (the console when omitted). With
        ``stop_on_first_failure`` the first failing command ends the plan.

        Returns:
            The result of the failing command, or of the last one.

        Raises:
            BuildExecutorError: If the plan is empty or *cwd* is missing.
            ProcessSpawnError: If a command could not be started.
            ProcessInterruptedError: If the run was cancelled or timed out.
        """
        if not build_plan.commands:
            raise BuildExecutorError("Build plan has no commands.")
        directory = self._resolve_cwd(cwd, None)
        sink = on_output or _console_sink

        console.print(
            Panel(
                f"[cyan]{escape(build_plan.description)}[/cyan]\n"
                + "\n".join(f"  $ {escape(line)}" for line in build_plan.command_lines())
                + (f"\n  Directory: {escape(str(directory))}" if directory else ""),
                title="Build Plan",
                border_style="cyan",
            )
        )

        result: Optional[ProcessResult] = None
        first_failure: Optional[ProcessResult] = None
        for command in build_plan.commands:
            result = await self.runner.run_with_streaming(
                list(command), directory, None, sink, cancel_event=cancel_event
            )
            if not result.success:
                first_failure = first_failure or result
                if self.stop_on_first_failure:
                    break

        final = first_failure or result
        assert final is not None  # the plan has at least one command
        self._display_result(final, "Build")
        return final

    async def build_project(
        self,
        config: InitialConfig,
        cwd: Optional[str | Path] = None,
        on_output: Optional[OutputCallback] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ProcessResult:
        """Plan and execute the build for *config*.

        The working directory defaults to the configured project directory.
        On success the expected artifact directory is printed.
        """
        directory = self._resolve_cwd(cwd, config)
        build_plan = plan_for_config(config, self.host_os)
        result = await self.execute(build_plan, directory, on_output, cancel_event=cancel_event)
        if result.success and directory is not None:
            output_dir = get_output_directory(directory, config.programming_language)
            console.print(
                f"[green]Artifacts:[/green] {escape(str(output_dir))} "
                f"[dim]({get_output_directory_description(config.programming_language)})[/dim]"
            )
        return result

    async def run_project(
        self,
        config: InitialConfig,
        cwd: Optional[str | Path] = None,
        on_output: Optional[OutputCallback] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ProcessResult:
        """Execute the generic run command for *config*.

        Raises:
            BuildExecutorError: If the language has no generic run command.
        """
        command = get_run_command(
            config.programming_language, config.project_style, config, self.host_os
        )
        if command is None:
            raise BuildExecutorError(
                f"No generic run command for {config.programming_language.display_name}; "
                "run the program manually."
            )
        directory = self._resolve_cwd(cwd, config)
        console.print(f"[cyan]Running:[/cyan] {escape(format_command(command))}")
        result = await self.runner.run_with_streaming(
            command, directory, None, on_output or _console_sink, cancel_event=cancel_event
        )
        self._display_result(result, "Run")
        return result

    def _display_result(self, result: ProcessResult, label: str) -> None:
        """Display a formatted result summary to the console."""
        if result.success:
            style = "green"
            title = f"{label} Succeeded"
        else:
            style = "red"
            title = f"{label} Failed"

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="bold")
        table.add_column("Value")

        table.add_row("Command", escape(format_command(result.command)))
        table.add_row("Exit Code", str(result.exit_code))
        table.add_row("Duration", format_duration(result.duration_seconds))

        console.print(Panel(table, title=title, border_style=style))
