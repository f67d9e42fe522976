"""Build and run command planning.

Maps a target language to one best-guess build command and, where the entry
point is unambiguous, one run command. C# projects that target Windows are
bridged through Wine when the host is not Windows. The decision uses only
the host OS name and the configured targets; no toolchain is probed.
"""

from __future__ import annotations

import platform
from typing import Optional

from pydantic import BaseModel, ConfigDict

from vibewizard.project.models import (
    InitialConfig,
    ProgrammingLanguage,
    ProjectStyle,
    TargetOs,
)

WINE = "wine"


class BuildPlan(BaseModel):
    """Ordered command invocations plus a one-line description."""

    model_config = ConfigDict(frozen=True)

    commands: tuple[tuple[str, ...], ...]
    description: str

    def command_lines(self) -> list[str]:
        return [" ".join(command) for command in self.commands]


_BUILD_TABLE: dict[ProgrammingLanguage, tuple[tuple[str, ...], str]] = {
    ProgrammingLanguage.CPP: (("cmake", "--build", "build"), "Run cmake --build build"),
    ProgrammingLanguage.JAVA: (("mvn", "package"), "Run mvn package"),
    ProgrammingLanguage.PYTHON: (
        ("python", "-m", "compileall", "."),
        "Run python -m compileall for syntax verification",
    ),
    ProgrammingLanguage.PHP: (("php", "-l"), "Run PHP syntax check"),
    ProgrammingLanguage.RUST: (("cargo", "build"), "Run cargo build"),
    ProgrammingLanguage.GO: (("go", "build"), "Run go build"),
    ProgrammingLanguage.JAVASCRIPT: (("npm", "run", "build"), "Run npm run build"),
    ProgrammingLanguage.RUBY: (
        ("bundle", "exec", "rake", "build"),
        "Run bundle exec rake build",
    ),
}

_CUSTOM_BUILD = (("sh", "-c", "./build.sh"), "Run custom build script ./build.sh")

_RUN_TABLE: dict[ProgrammingLanguage, tuple[str, ...]] = {
    ProgrammingLanguage.RUST: ("cargo", "run"),
    ProgrammingLanguage.GO: ("go", "run", "."),
    ProgrammingLanguage.JAVASCRIPT: ("npm", "start"),
}


def host_os_name() -> str:
    """Name of the operating system this process runs on."""
    return platform.system()


def is_windows_host(host_os: Optional[str] = None) -> bool:
    """True when *host_os* (default: the current host) names Windows."""
    name = host_os if host_os is not None else host_os_name()
    return name.strip().lower().startswith("win")


def needs_wine_bridge(
    language: ProgrammingLanguage,
    config: Optional[InitialConfig],
    host_os: Optional[str] = None,
) -> bool:
    """Whether a .NET command must run through Wine.

    Only C# is bridged, and only when the host is not Windows but the
    project targets Windows.
    """
    if language != ProgrammingLanguage.CSHARP or config is None:
        return False
    return not is_windows_host(host_os) and TargetOs.WINDOWS in config.target_operating_systems


def plan(
    language: ProgrammingLanguage,
    style: Optional[ProjectStyle],
    config: Optional[InitialConfig],
    host_os: Optional[str] = None,
) -> BuildPlan:
    """Return the build plan for *language*.

    *style* is accepted for symmetry with the run command; no language
    currently builds differently per style.
    """
    if language == ProgrammingLanguage.CSHARP:
        if needs_wine_bridge(language, config, host_os):
            return BuildPlan(
                commands=((WINE, "dotnet", "build"),),
                description="Run wine dotnet build (cross-compiling for Windows)",
            )
        return BuildPlan(commands=(("dotnet", "build"),), description="Run dotnet build")

    command, description = _BUILD_TABLE.get(language, _CUSTOM_BUILD)
    return BuildPlan(commands=(command,), description=description)


def get_run_command(
    language: ProgrammingLanguage,
    style: Optional[ProjectStyle],
    config: Optional[InitialConfig],
    host_os: Optional[str] = None,
) -> Optional[list[str]]:
    """Best-guess command that runs the built project, or None.

    Java needs a main class and Python a script path, so neither (nor any
    other language without a conventional entry point) gets a generic
    command.
    """
    if language == ProgrammingLanguage.CSHARP:
        if needs_wine_bridge(language, config, host_os):
            return [WINE, "dotnet", "run"]
        return ["dotnet", "run"]
    command = _RUN_TABLE.get(language)
    return list(command) if command is not None else None


def plan_for_config(config: InitialConfig, host_os: Optional[str] = None) -> BuildPlan:
    """Shortcut for ``plan`` using the language and style stored in *config*."""
    return plan(config.programming_language, config.project_style, config, host_os)
