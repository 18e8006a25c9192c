"""Tests for `ldde tools` and the global options."""

import json

from ldde import __version__


def test_tools_lists_builtins(invoke):
    res = invoke(["tools"])
    assert res.exit_code == 0
    names = [line.split()[0] for line in res.output.splitlines()]
    assert names == [
        "clone-repository",
        "execute-bash-command",
        "safe-cleanup",
        "install-binary",
        "install-manpages",
        "js-global-install",
    ]
    assert "Clone a git repository" in res.output


def test_tools_schema(invoke):
    res = invoke(["tools", "execute-bash-command"])
    assert res.exit_code == 0
    schema = json.loads(res.output)
    assert "working-directory" in schema["properties"]
    assert "interactive-prompts" in schema["properties"]
    assert schema["required"] == ["command"]


def test_tools_with_custom_registry(invoke, registry):
    res = invoke(["tools"], registry=registry)
    assert res.exit_code == 0
    assert res.output.split() == ["record", "Record", "messages", "(tests", "only)"]


def test_unknown_tool(invoke):
    res = invoke(["tools", "nope"])
    assert res.exit_code == 1
    assert "Error: Unknown tool: nope" in res.output
    assert "clone-repository" in res.output


def test_version(invoke):
    res = invoke(["--version"])
    assert res.exit_code == 0
    assert f"ldde, version {__version__}" in res.output


def test_help_lists_commands(invoke):
    res = invoke(["--help"])
    assert res.exit_code == 0
    for command in ("install", "plan", "tools"):
        assert command in res.output
