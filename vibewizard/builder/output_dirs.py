"""Conventional artifact directories per language.

Used after a successful build to point the user at the compiled output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from vibewizard.project.models import ProgrammingLanguage

# Candidate directories relative to the project root, most specific first.
_OUTPUT_DIRS: dict[ProgrammingLanguage, tuple[str, ...]] = {
    ProgrammingLanguage.CSHARP: ("bin/Debug", "bin/Release", "bin"),
    ProgrammingLanguage.JAVA: ("target", "build/libs", "build", "out"),
    ProgrammingLanguage.RUST: ("target/debug", "target/release", "target"),
    ProgrammingLanguage.CPP: ("build", "out", "bin"),
    ProgrammingLanguage.GO: ("bin",),
    ProgrammingLanguage.JAVASCRIPT: ("dist", "build", "out"),
    ProgrammingLanguage.PYTHON: ("dist", "build", "__pycache__"),
    ProgrammingLanguage.RUBY: ("pkg", "build"),
    ProgrammingLanguage.PHP: ("dist", "build"),
}

_GENERIC_DIRS = ("build", "dist", "out", "bin")

_DESCRIPTIONS: dict[ProgrammingLanguage, str] = {
    ProgrammingLanguage.CSHARP: "bin/Debug or bin/Release",
    ProgrammingLanguage.JAVA: "target or build/libs",
    ProgrammingLanguage.RUST: "target/debug or target/release",
    ProgrammingLanguage.CPP: "build",
    ProgrammingLanguage.GO: "project root or bin",
    ProgrammingLanguage.JAVASCRIPT: "dist or build",
    ProgrammingLanguage.PYTHON: "dist or build",
    ProgrammingLanguage.RUBY: "pkg",
    ProgrammingLanguage.PHP: "dist or build",
}


def possible_output_directories(language: Optional[ProgrammingLanguage]) -> tuple[str, ...]:
    return _OUTPUT_DIRS.get(language, _GENERIC_DIRS)


def get_output_directory(
    project_dir: Optional[str | Path], language: Optional[ProgrammingLanguage]
) -> Optional[Path]:
    """Return where *language*'s build artifacts live under *project_dir*.

    The first candidate that exists as a directory wins. When none exists
    yet the preferred candidate is returned anyway. None in, None out.
    """
    if project_dir is None:
        return None
    root = Path(project_dir)
    candidates = possible_output_directories(language)
    for candidate in candidates:
        path = root / candidate
        if path.is_dir():
            return path
    return root / candidates[0]


def get_output_directory_description(language: Optional[ProgrammingLanguage]) -> str:
    """Human-readable hint such as ``"target/debug or target/release"``."""
    return _DESCRIPTIONS.get(language, "build or dist")
