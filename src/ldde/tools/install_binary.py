"""install-binary: copy an executable into a bin directory."""

from __future__ import annotations

import logging
import os
import platform
import shutil
import sys
from typing import List, Mapping, Optional

from ..context import PipelineContext
from ..exceptions import ToolError
from ..log import success
from ..models import ToolParams
from .base import Tool

logger = logging.getLogger(__name__)


class InstallBinaryParams(ToolParams):
    source_path: str
    binary_name: str | None = None
    destination_directory: str | None = None
    overwrite: bool = False
    quiet: bool = False


def _is_arm_mac(system: str, machine: str) -> bool:
    return system == "darwin" and machine in ("arm64", "aarch64")


def binary_filename(source_path: str, requested: Optional[str], system: str = sys.platform) -> str:
    name = requested or os.path.basename(source_path)
    if system == "win32" and not name.lower().endswith(".exe"):
        name += ".exe"
    return name


def candidate_directories(
    binary_name: str,
    env: Mapping[str, str],
    system: str = sys.platform,
    machine: Optional[str] = None,
) -> List[str]:
    """Install locations in preference order for this platform."""
    machine = machine or platform.machine().lower()
    home = env.get("HOME") or env.get("USERPROFILE") or env.get("LOCALAPPDATA") or ""
    candidates: List[str] = []

    if system == "darwin":
        if _is_arm_mac(system, machine):
            candidates += [os.path.join("/opt", binary_name, "bin"), "/opt/bin", "/opt/homebrew/bin"]
        else:
            candidates += ["/usr/local/bin", "/opt/local/bin"]
        if home:
            candidates += [os.path.join(home, ".local", "bin"), os.path.join(home, "bin")]
    elif system == "win32":
        for var in ("ProgramFiles", "ProgramFiles(x86)", "ProgramData"):
            if env.get(var):
                candidates.append(os.path.join(env[var], binary_name))
        if env.get("LOCALAPPDATA"):
            candidates.append(os.path.join(env["LOCALAPPDATA"], "Programs", binary_name))
    else:
        candidates += ["/usr/local/bin", "/usr/bin", "/opt/bin", "/opt/local/bin"]
        if home:
            candidates += [os.path.join(home, ".local", "bin"), os.path.join(home, "bin")]

    return list(dict.fromkeys(candidates))


def symlink_candidates(
    installed_path: str,
    binary_name: str,
    env: Mapping[str, str],
    system: str = sys.platform,
    machine: Optional[str] = None,
) -> List[str]:
    """Conventional bin directories to link the installed binary into."""
    machine = machine or platform.machine().lower()
    home = env.get("HOME") or ""
    dirs: List[str] = []
    if system == "darwin":
        dirs += ["/opt/homebrew/bin", "/usr/local/bin"] if _is_arm_mac(system, machine) else ["/usr/local/bin"]
        if home:
            dirs.append(os.path.join(home, ".local", "bin"))
    elif system != "win32":
        dirs += ["/usr/local/bin", "/usr/bin"]
        if home:
            dirs.append(os.path.join(home, ".local", "bin"))
    return [
        os.path.join(d, binary_name)
        for d in dirs
        if not installed_path.startswith(d)
    ]


def _link(target: str, link_path: str, quiet: bool) -> None:
    if os.path.lexists(link_path):
        return
    try:
        os.makedirs(os.path.dirname(link_path), exist_ok=True)
        os.symlink(target, link_path)
    except OSError as e:
        if not quiet:
            logger.warning('Unable to create symlink "%s": %s', link_path, e)
        return
    if not quiet:
        logger.debug("Created symlink: %s -> %s", link_path, target)


class InstallBinary(Tool):
    name = "install-binary"
    params_model = InstallBinaryParams
    description = "Install an executable into the first writable bin directory"

    def _install(self, source: str, destination: str, overwrite: bool) -> None:
        if os.path.lexists(destination) and not overwrite:
            raise ToolError(
                f'Destination "{destination}" already exists. Enable overwrite to replace it.'
            )
        shutil.copyfile(source, destination)
        if sys.platform != "win32":
            try:
                os.chmod(destination, 0o755)
            except OSError as e:
                self.logger.warning('Failed to mark "%s" as executable: %s', destination, e)

    def execute(self, params: InstallBinaryParams, context: PipelineContext) -> None:
        source = os.path.abspath(params.source_path)
        if not os.path.isfile(source):
            raise ToolError(f'Source binary "{source}" does not exist or is inaccessible')

        filename = binary_filename(source, params.binary_name)
        stem = filename[:-4] if filename.lower().endswith(".exe") else filename

        if params.destination_directory:
            candidates = [os.path.abspath(params.destination_directory)]
        else:
            candidates = candidate_directories(stem, context.env)
        if not candidates:
            raise ToolError("No candidate directories resolved for binary installation")

        if not params.quiet:
            self.logger.info(
                'Installing binary "%s" from %s for platform %s/%s',
                filename, source, sys.platform, platform.machine().lower(),
            )
            self.logger.debug("Candidate directories (in order): %s", ", ".join(candidates))

        installed: Optional[str] = None
        attempts: List[str] = []
        for directory in candidates:
            destination = os.path.join(directory, filename if sys.platform == "win32" else stem)
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                attempts.append(f'Failed to prepare directory "{directory}": {e}')
                continue
            try:
                self._install(source, destination, params.overwrite)
            except (ToolError, OSError) as e:
                attempts.append(f'Failed to install to "{destination}": {e}')
                continue
            installed = destination
            if not params.quiet:
                success(self.logger, "Installed binary to %s", destination)
            break

        if installed is None:
            raise ToolError("Unable to install binary. Attempts:\n- " + "\n- ".join(attempts))

        for link in symlink_candidates(installed, stem, context.env):
            _link(installed, link, params.quiet)


__all__ = [
    "InstallBinary",
    "InstallBinaryParams",
    "binary_filename",
    "candidate_directories",
    "symlink_candidates",
]
