"""Rust plugin: Cargo projects."""

from pathlib import Path
from typing import Sequence

from git_worktree_keeper.models.plugin import UNKNOWN, ProjectMetadata
from git_worktree_keeper.plugins.base import InstallCandidate, Plugin, as_text, read_toml


class RustPlugin(Plugin):
    id = "rust"
    display_name = "Rust"
    marker_files = ("Cargo.toml",)
    dependency_dirs = ("target",)

    def install_candidates(self, directory: Path) -> Sequence[InstallCandidate]:
        # cargo check fetches dependencies and populates target/
        return (InstallCandidate("cargo", ("cargo", "check")),)

    def package_manager(self, directory: Path) -> str:
        return "cargo"

    def project_metadata(self, directory: Path) -> ProjectMetadata:
        manifest = read_toml(Path(directory) / "Cargo.toml")
        package = manifest.get("package", {})
        version = package.get("version")
        if isinstance(version, dict):
            # version.workspace = true
            version = manifest.get("workspace", {}).get("package", {}).get("version")
        return ProjectMetadata(as_text(package.get("name")), as_text(version))

    def ecosystem_version(self) -> str:
        output = self.runner.output(["rustc", "--version"])
        if not output or len(output.split()) < 2:
            return UNKNOWN
        return output.split()[1]
