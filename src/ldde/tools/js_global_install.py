"""js-global-install: install a JavaScript package globally."""

from __future__ import annotations

import logging
import re
from typing import List, Literal, NamedTuple, Optional

import semver

from ..context import PipelineContext
from ..exceptions import ToolError
from ..models import ToolParams
from ..process_utils import run_captured, stderr_or_stdout
from .base import Tool

logger = logging.getLogger(__name__)

PackageManager = Literal["bun", "npm", "yarn", "pnpm"]

# First run of up to three dot-separated numbers; "^4.5" -> "4.5".
_NUMERIC_CORE = re.compile(r"\d+(?:\.\d+){0,2}")


class JsGlobalInstallParams(ToolParams):
    package_manager: PackageManager = "bun"
    handle: str
    registry: str | None = None


class PackageHandle(NamedTuple):
    name: str
    version: Optional[str] = None


def valid_semver(version: str) -> Optional[str]:
    """Normalized ``x.y.z[-pre][+build]``, or None when not valid semver."""
    candidate = version.strip().lstrip("=v")
    try:
        return str(semver.Version.parse(candidate))
    except ValueError:
        return None


def coerce_semver(version: str) -> Optional[str]:
    """Loosely pull ``x[.y[.z]]`` out of ``version`` (``"v2"`` -> ``"2.0.0"``)."""
    match = _NUMERIC_CORE.search(version)
    if not match:
        return None
    try:
        return str(semver.Version.parse(match.group(0), optional_minor_and_patch=True))
    except ValueError:
        return None


def parse_package_handle(handle: str) -> PackageHandle:
    """Split ``name[@version]``; scoped names (``@org/pkg@1.0.0``) are supported."""
    at = handle.rfind("@")
    if at <= 0:
        return PackageHandle(handle)

    name, version = handle[:at], handle[at + 1:]
    if not version:
        return PackageHandle(name)

    valid = valid_semver(version)
    if valid:
        return PackageHandle(name, valid)

    coerced = coerce_semver(version)
    if coerced:
        logger.warning(
            'Version "%s" was coerced to "%s" for package %s', version, coerced, name
        )
        return PackageHandle(name, coerced)

    raise ToolError(f'Invalid version syntax: "{version}" for package {name}')


def version_check_command(
    manager: str, package: PackageHandle, registry: Optional[str] = None
) -> List[str]:
    spec = f"{package.name}@{package.version}"
    registry_args = ["--registry", registry] if registry else []
    if manager == "yarn":
        return ["yarn", "info", spec, "--json", *registry_args]
    if manager == "pnpm":
        return ["pnpm", "view", spec, *registry_args]
    # bun has no view command; npm reads the same registry
    return ["npm", "view", spec, *registry_args]


def install_command(
    manager: str, package: PackageHandle, registry: Optional[str] = None
) -> List[str]:
    spec = f"{package.name}@{package.version}" if package.version else package.name
    registry_args = ["--registry", registry] if registry else []
    commands = {
        "npm": ["npm", "install", "-g"],
        "yarn": ["yarn", "global", "add"],
        "pnpm": ["pnpm", "add", "-g"],
        "bun": ["bun", "add", "-g"],
    }
    if manager not in commands:
        raise ToolError(f"Unsupported package manager: {manager}")
    return [*commands[manager], spec, *registry_args]


class JsGlobalInstall(Tool):
    name = "js-global-install"
    params_model = JsGlobalInstallParams
    description = "Install a JavaScript package globally with bun, npm, yarn or pnpm"

    def execute(self, params: JsGlobalInstallParams, context: PipelineContext) -> None:
        package = parse_package_handle(params.handle)
        manager = params.package_manager

        self.logger.debug(
            "Installing package: %s%s",
            package.name,
            f"@{package.version}" if package.version else " (latest)",
        )
        self.logger.debug("Package manager: %s", manager)
        if params.registry:
            self.logger.debug("Registry: %s", params.registry)

        try:
            if package.version:
                check = run_captured(
                    version_check_command(manager, package, params.registry), context.env
                )
                if check.returncode != 0:
                    raise ToolError(
                        f"Version {package.version} not found for package {package.name}"
                    )
                self.logger.debug("Version %s confirmed to exist", package.version)

            cmd = install_command(manager, package, params.registry)
            self.logger.debug("Running: %s", " ".join(cmd))
            result = run_captured(cmd, context.env)
        except OSError as e:
            raise ToolError(f"Package installation failed: {e}") from e

        if result.returncode != 0:
            raise ToolError(f"Package installation failed: {stderr_or_stdout(result)}")

        self.logger.debug(
            "Successfully installed %s globally using %s", params.handle, manager
        )


__all__ = [
    "JsGlobalInstall",
    "JsGlobalInstallParams",
    "PackageHandle",
    "coerce_semver",
    "install_command",
    "parse_package_handle",
    "valid_semver",
    "version_check_command",
]
