"""JavaScript plugin: Node.js projects managed by pnpm, yarn or npm."""

from pathlib import Path
from typing import Dict, Sequence

from git_worktree_keeper.models.plugin import UNKNOWN, ProjectMetadata
from git_worktree_keeper.plugins.base import InstallCandidate, Plugin, as_text, read_json


class JavaScriptPlugin(Plugin):
    id = "javascript"
    display_name = "JavaScript"
    marker_files = ("package.json",)
    dependency_dirs = ("node_modules",)
    ephemeral_paths = (".npm",)

    def install_candidates(self, directory: Path) -> Sequence[InstallCandidate]:
        return (
            InstallCandidate("pnpm", ("pnpm", "install"), "pnpm-lock.yaml"),
            InstallCandidate("yarn", ("yarn", "install"), "yarn.lock"),
            InstallCandidate("npm", ("npm", "install")),
        )

    def package_manager(self, directory: Path) -> str:
        directory = Path(directory)
        if (directory / "pnpm-lock.yaml").is_file():
            return "pnpm"
        if (directory / "yarn.lock").is_file():
            return "yarn"
        if (directory / "package-lock.json").is_file():
            return "npm"
        return UNKNOWN

    def project_metadata(self, directory: Path) -> ProjectMetadata:
        package = read_json(Path(directory) / "package.json")
        return ProjectMetadata(as_text(package.get("name")), as_text(package.get("version")))

    def ecosystem_version(self) -> str:
        output = self.runner.output(["node", "--version"])
        return output.lstrip("v") if output else UNKNOWN

    def status_details(self, directory: Path) -> Dict[str, str]:
        scripts = read_json(Path(directory) / "package.json").get("scripts")
        if isinstance(scripts, dict) and scripts:
            return {"scripts": f"{len(scripts)} available"}
        return {}
