"""Python plugin: projects managed by poetry, uv, pipenv or pip."""

from pathlib import Path
from typing import List, Sequence

from git_worktree_keeper.models.plugin import UNKNOWN, ProjectMetadata
from git_worktree_keeper.plugins.base import InstallCandidate, Plugin, as_text, read_toml


def is_poetry_project(directory: Path) -> bool:
    """Check whether pyproject.toml is managed by Poetry."""
    pyproject = read_toml(Path(directory) / "pyproject.toml")
    if "poetry" in pyproject.get("tool", {}):
        return True
    backend = pyproject.get("build-system", {}).get("build-backend", "")
    return isinstance(backend, str) and backend.startswith("poetry")


class PythonPlugin(Plugin):
    id = "python"
    display_name = "Python"
    marker_files = ("requirements.txt", "pyproject.toml", "setup.py", "Pipfile", "uv.lock")
    # Virtual environments embed absolute paths, so they are never shared
    dependency_dirs = (".venv", "venv")
    shareable = False
    ephemeral_paths = (".pytest_cache", ".mypy_cache", ".ruff_cache")

    def install_candidates(self, directory: Path) -> Sequence[InstallCandidate]:
        candidates: List[InstallCandidate] = []
        if is_poetry_project(directory):
            candidates.append(InstallCandidate("poetry", ("poetry", "install"), "pyproject.toml"))
        candidates.extend([
            InstallCandidate("uv", ("uv", "sync"), "uv.lock"),
            InstallCandidate("pipenv", ("pipenv", "install"), "Pipfile"),
            InstallCandidate("pip", ("pip", "install", "-r", "requirements.txt"), "requirements.txt"),
            InstallCandidate("pip3", ("pip3", "install", "-r", "requirements.txt"), "requirements.txt"),
        ])
        return candidates

    def package_manager(self, directory: Path) -> str:
        kind = super().package_manager(directory)
        return "pip" if kind == "pip3" else kind

    def project_metadata(self, directory: Path) -> ProjectMetadata:
        directory = Path(directory)
        pyproject = read_toml(directory / "pyproject.toml")

        project = pyproject.get("project", {})
        if project.get("name"):
            return ProjectMetadata(as_text(project.get("name")), as_text(project.get("version")))

        poetry = pyproject.get("tool", {}).get("poetry", {})
        if poetry.get("name"):
            return ProjectMetadata(as_text(poetry.get("name")), as_text(poetry.get("version")))

        # requirements.txt / Pipfile projects carry no name; use the directory
        return ProjectMetadata(directory.resolve().name or UNKNOWN)

    def ecosystem_version(self) -> str:
        output = self.runner.output(["python3", "--version"])
        if not output:
            return UNKNOWN
        return output.split()[-1]
