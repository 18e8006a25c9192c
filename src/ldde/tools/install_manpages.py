"""install-manpages: copy manual pages into a man directory tree."""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import sys
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

from pydantic import Field

from ..context import PipelineContext
from ..exceptions import ToolError
from ..log import success
from ..models import ToolParams
from ..process_utils import run_captured, stderr_or_stdout
from .base import Tool

logger = logging.getLogger(__name__)

MANPAGE_EXT = re.compile(r"\.(\d[\w+-]*)(\.\w+)?$", re.IGNORECASE)
SECTION_EXT = re.compile(r"\.(\d[\w+-]*)$", re.IGNORECASE)
COMPRESSED_EXT = re.compile(r"\.(gz|bz2|xz|lz|lzma|z)$", re.IGNORECASE)
MAN_DIR = re.compile(r"^man\d[\w+-]*$", re.IGNORECASE)
LOCALE_SEGMENT = re.compile(r"^[A-Za-z0-9_.@-]+$")


class InstallManpagesParams(ToolParams):
    source_directory: str | None = None
    source_files: List[str] | None = Field(default=None, min_length=1)
    destination_directory: str | None = None
    quiet: bool = False
    update_database: bool = False


class ManpageSource(NamedTuple):
    source_path: str
    relative_parts: Tuple[str, ...]


def is_manpage_file(file_name: str) -> bool:
    return MANPAGE_EXT.search(COMPRESSED_EXT.sub("", file_name)) is not None


def extract_section(file_name: str) -> Optional[str]:
    match = SECTION_EXT.search(COMPRESSED_EXT.sub("", file_name))
    return match.group(1) if match else None


def _is_locale_segment(segment: Optional[str]) -> bool:
    if not segment or re.match(r"^man\d", segment, re.IGNORECASE):
        return False
    if segment.lower() in ("man", "share"):
        return False
    return LOCALE_SEGMENT.match(segment) is not None


def destination_parts(relative_parts: Tuple[str, ...], file_name: str) -> List[str]:
    """Relative destination under a man root, e.g. ``["man1", "ls.1"]``.

    An existing ``manN`` directory in the source path is preserved together
    with a locale directory directly above it (``de/man1/ls.1``).
    """
    parts = list(relative_parts)
    if not parts or parts[-1] != file_name:
        parts.append(file_name)

    for index, part in enumerate(parts):
        if MAN_DIR.match(part):
            locale = parts[index - 1] if index > 0 else None
            if _is_locale_segment(locale):
                return [locale, *parts[index:]]
            return parts[index:]

    section = extract_section(file_name)
    if not section:
        raise ToolError(
            f'Cannot determine manual section for "{file_name}". Ensure files end '
            'with a section extension (e.g. ".1") or reside in "man<section>" directories.'
        )
    return [f"man{section}", file_name]


def _collect_from_directory(directory: str, quiet: bool) -> List[ManpageSource]:
    results: List[ManpageSource] = []
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for file_name in sorted(files):
            path = os.path.join(root, file_name)
            if not os.path.isfile(path):
                if not quiet:
                    logger.debug('Skipping non-regular entry "%s"', path)
                continue
            if not is_manpage_file(file_name):
                if not quiet:
                    logger.debug('Skipping non-manpage file "%s"', path)
                continue
            relative = os.path.relpath(path, directory)
            results.append(ManpageSource(path, tuple(re.split(r"[\\/]", relative))))
    return results


def collect_manpage_sources(paths: List[str], quiet: bool) -> List[ManpageSource]:
    results: List[ManpageSource] = []
    for path in paths:
        if os.path.isdir(path):
            found = _collect_from_directory(path, quiet)
            if not found and not quiet:
                logger.warning(
                    'No manpage files detected under directory "%s". Expected files '
                    'such as "*.1" or "*.1.gz".',
                    path,
                )
            results.extend(found)
        elif os.path.isfile(path):
            file_name = os.path.basename(path)
            if not is_manpage_file(file_name):
                raise ToolError(
                    f'File "{path}" is not recognised as a manpage '
                    '(expected extension like ".1" or ".1.gz").'
                )
            results.append(ManpageSource(path, (file_name,)))
        elif os.path.lexists(path):
            raise ToolError(f'Unsupported source path type for "{path}"')
        else:
            raise ToolError(f'Source path "{path}" does not exist')
    return results


def destination_candidates(
    env: Mapping[str, str],
    system: str = sys.platform,
    machine: Optional[str] = None,
) -> List[str]:
    machine = machine or platform.machine().lower()
    home = env.get("HOME") or env.get("USERPROFILE") or env.get("LOCALAPPDATA") or ""
    candidates: List[str] = []

    if system == "darwin":
        if machine in ("arm64", "aarch64"):
            candidates += ["/opt/homebrew/share/man", "/usr/local/share/man"]
        else:
            candidates += ["/usr/local/share/man", "/opt/local/share/man"]
        candidates.append("/usr/share/man")
        if home:
            candidates += [os.path.join(home, "Library", "Man"), os.path.join(home, ".local", "share", "man")]
    elif system == "win32":
        for base in (env.get("ProgramData"), env.get("LOCALAPPDATA"), home):
            if base:
                candidates.append(os.path.join(base, "man"))
    else:
        candidates += ["/usr/local/share/man", "/usr/share/man", "/usr/local/man", "/usr/man"]
        if home:
            candidates.append(os.path.join(home, ".local", "share", "man"))

    return list(dict.fromkeys(os.path.abspath(c) for c in candidates))


def plan_install(
    sources: List[ManpageSource], destination: str, quiet: bool
) -> List[Tuple[str, str]]:
    """(source, destination) pairs; later duplicates of a destination are skipped."""
    operations: List[Tuple[str, str]] = []
    seen: Dict[str, str] = {}
    for source in sources:
        file_name = os.path.basename(source.source_path)
        target = os.path.join(destination, *destination_parts(source.relative_parts, file_name))
        existing = seen.get(target)
        if existing is not None:
            if existing != source.source_path and not quiet:
                logger.warning(
                    'Skipping duplicate manpage target "%s" from "%s" (already provided by "%s")',
                    target, source.source_path, existing,
                )
            continue
        seen[target] = source.source_path
        operations.append((source.source_path, target))
    return operations


def _ensure_directory(path: str) -> None:
    if os.path.isfile(path):
        raise ToolError(f'Path "{path}" exists and is a file, not a directory')
    os.makedirs(path, exist_ok=True)


class InstallManpages(Tool):
    name = "install-manpages"
    params_model = InstallManpagesParams
    description = "Install manual pages and optionally refresh the man database"

    def _install_into(self, sources: List[ManpageSource], destination: str, quiet: bool) -> int:
        _ensure_directory(destination)
        operations = plan_install(sources, destination, quiet)
        for source, target in operations:
            _ensure_directory(os.path.dirname(target))
            shutil.copyfile(source, target)
            if sys.platform != "win32":
                try:
                    os.chmod(target, 0o644)
                except OSError as e:
                    if not quiet:
                        self.logger.warning('Failed to set permissions on "%s": %s', target, e)
            if not quiet:
                self.logger.debug("Installed manpage: %s", target)
        return len(operations)

    def _update_database(self, directory: str, context: PipelineContext, quiet: bool) -> None:
        path = context.env.get("PATH")
        for cmd in (["mandb", "-q", directory], ["makewhatis", directory]):
            if not shutil.which(cmd[0], path=path):
                continue
            if not quiet:
                self.logger.debug("Updating man database with %s for %s", cmd[0], directory)
            result = run_captured(cmd, context.env)
            if result.returncode == 0:
                return
            if not quiet:
                self.logger.warning(
                    '%s failed for "%s": %s', cmd[0], directory, stderr_or_stdout(result)
                )
        if not quiet:
            self.logger.warning(
                "Neither mandb nor makewhatis is available or succeeded; manual "
                "database update may be required."
            )

    def execute(self, params: InstallManpagesParams, context: PipelineContext) -> None:
        quiet = params.quiet
        raw = [params.source_directory or "", *(params.source_files or [])]
        sources = [os.path.abspath(s.strip()) for s in raw if s.strip()]
        if not sources:
            raise ToolError(
                "install-manpages requires at least one source path "
                "(source-directory or source-files)."
            )
        if not quiet:
            self.logger.info(
                "Installing manpages from %s on %s/%s",
                ", ".join(sources), sys.platform, platform.machine().lower(),
            )

        manpages = collect_manpage_sources(sources, quiet)
        if not manpages:
            raise ToolError(
                "No manpage files matched the provided sources. Ensure files end "
                "with traditional manpage sections (e.g. .1, .5, .7)."
            )

        if params.destination_directory:
            candidates = [os.path.abspath(params.destination_directory)]
        else:
            candidates = destination_candidates(context.env)
        if not quiet:
            self.logger.debug("Destination candidates (preference order): %s", ", ".join(candidates))

        errors: List[str] = []
        selected: Optional[str] = None
        count = 0
        for candidate in candidates:
            try:
                count = self._install_into(manpages, candidate, quiet)
            except (ToolError, OSError) as e:
                errors.append(f"{candidate}: {e}")
                if not quiet:
                    self.logger.warning("Failed to install manpages into %s: %s", candidate, e)
                continue
            selected = candidate
            break

        if selected is None:
            raise ToolError(
                "Unable to install manpages. Attempted locations:\n- " + "\n- ".join(errors)
            )

        if count == 0:
            self.logger.warning("No manpage files were installed into %s.", selected)
        elif not quiet:
            self.logger.info("Installed %d manpage file(s) into %s", count, selected)

        if params.update_database:
            self._update_database(selected, context, quiet)

        if not quiet:
            success(
                self.logger,
                "Manpages available in %s%s",
                selected,
                " (database refreshed if possible)" if params.update_database else "",
            )


__all__ = [
    "InstallManpages",
    "InstallManpagesParams",
    "collect_manpage_sources",
    "destination_candidates",
    "destination_parts",
    "is_manpage_file",
    "plan_install",
]
