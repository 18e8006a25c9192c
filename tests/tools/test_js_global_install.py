"""Tests for the js-global-install tool."""

import subprocess

import pytest

from ldde.context import PipelineContext
from ldde.exceptions import ToolError
from ldde.tools import js_global_install
from ldde.tools.js_global_install import (
    JsGlobalInstall,
    JsGlobalInstallParams,
    PackageHandle,
    coerce_semver,
    install_command,
    parse_package_handle,
    valid_semver,
    version_check_command,
)


@pytest.mark.parametrize(
    "version, expected",
    [
        ("1.2.3", "1.2.3"),
        ("v1.2.3", "1.2.3"),
        ("=1.2.3", "1.2.3"),
        (" 2.0.0-rc.1 ", "2.0.0-rc.1"),
        ("1.2.3-beta.1", "1.2.3-beta.1"),
        ("1.2.3+build.5", "1.2.3+build.5"),
        ("1.2", None),
        ("01.2.3", None),
        ("latest", None),
    ],
)
def test_valid_semver(version, expected):
    assert valid_semver(version) == expected


@pytest.mark.parametrize(
    "version, expected",
    [
        ("2", "2.0.0"),
        ("v3.1", "3.1.0"),
        ("^4.5.6", "4.5.6"),
        (">=1.2.3.4", "1.2.3"),
        ("latest", None),
    ],
)
def test_coerce_semver(version, expected):
    assert coerce_semver(version) == expected


@pytest.mark.parametrize(
    "handle, expected",
    [
        ("typescript", PackageHandle("typescript")),
        ("typescript@5.4.2", PackageHandle("typescript", "5.4.2")),
        ("@biomejs/biome", PackageHandle("@biomejs/biome")),
        ("@biomejs/biome@1.8.0", PackageHandle("@biomejs/biome", "1.8.0")),
        ("prettier@", PackageHandle("prettier")),
    ],
)
def test_parse_package_handle(handle, expected):
    assert parse_package_handle(handle) == expected


def test_loose_version_is_coerced_with_warning(caplog):
    assert parse_package_handle("eslint@9") == PackageHandle("eslint", "9.0.0")
    assert 'coerced to "9.0.0"' in caplog.text


def test_invalid_version():
    with pytest.raises(ToolError, match='Invalid version syntax: "next" for package eslint'):
        parse_package_handle("eslint@next")


def test_commands():
    pkg = PackageHandle("tsx", "4.0.0")
    assert install_command("bun", pkg) == ["bun", "add", "-g", "tsx@4.0.0"]
    assert install_command("npm", PackageHandle("tsx")) == ["npm", "install", "-g", "tsx"]
    assert install_command("yarn", pkg, "https://r.example") == [
        "yarn", "global", "add", "tsx@4.0.0", "--registry", "https://r.example",
    ]
    assert install_command("pnpm", pkg) == ["pnpm", "add", "-g", "tsx@4.0.0"]
    assert version_check_command("bun", pkg) == ["npm", "view", "tsx@4.0.0"]
    assert version_check_command("yarn", pkg) == ["yarn", "info", "tsx@4.0.0", "--json"]


def test_unsupported_manager():
    with pytest.raises(ToolError, match="Unsupported package manager"):
        install_command("deno", PackageHandle("x"))


class TestExecute:
    @pytest.fixture
    def commands(self, monkeypatch):
        calls = []
        results = {}

        def fake_run(cmd, env, cwd=None):
            calls.append(cmd)
            code, stderr = results.get(cmd[1], (0, ""))
            return subprocess.CompletedProcess(cmd, code, "", stderr)

        monkeypatch.setattr(js_global_install, "run_captured", fake_run)
        return calls, results

    def run(self, **params):
        JsGlobalInstall().execute(
            JsGlobalInstallParams.model_validate(params), PipelineContext({"name": "js"})
        )

    def test_checks_version_then_installs(self, commands):
        calls, _ = commands
        self.run(**{"handle": "tsx@4.0.0", "package-manager": "npm"})
        assert calls == [["npm", "view", "tsx@4.0.0"], ["npm", "install", "-g", "tsx@4.0.0"]]

    def test_latest_skips_version_check(self, commands):
        calls, _ = commands
        self.run(handle="tsx")
        assert calls == [["bun", "add", "-g", "tsx"]]

    def test_missing_version(self, commands):
        calls, results = commands
        results["view"] = (1, "E404")
        with pytest.raises(ToolError, match="Version 9.9.9 not found for package tsx"):
            self.run(handle="tsx@9.9.9")
        assert len(calls) == 1

    def test_install_failure(self, commands):
        _, results = commands
        results["add"] = (1, "permission denied")
        with pytest.raises(ToolError, match="Package installation failed: permission denied"):
            self.run(handle="tsx")

    def test_package_manager_is_restricted(self):
        with pytest.raises(ValueError):
            JsGlobalInstallParams.model_validate({"handle": "x", "package-manager": "deno"})
