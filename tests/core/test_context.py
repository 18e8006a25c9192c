"""Tests for PipelineContext facts and variables."""

import pytest

from ldde.context import PipelineContext
from ldde.exceptions import ContextError


@pytest.fixture
def ctx():
    return PipelineContext(
        {
            "name": "neovim",
            "metadata": {"version": "0.10", "dependencies": ["git"]},
            "pipeline": [{"tool": "x", "with": {}}],
            "install-prefix": "/opt",
            "flags": {"enabled": True, "ratio": 0.5, "nothing": None},
            "when": object(),
        }
    )


def test_set_creates_nested_structure(ctx):
    ctx.set("ctx.repo.path", "/tmp/x")
    assert ctx.get("ctx") == {"repo": {"path": "/tmp/x"}}
    assert ctx.get("ctx.repo.path") == "/tmp/x"
    assert ctx.has("ctx.repo")
    assert ctx.resolve("ctx.repo.path") == "/tmp/x"


def test_absent_returns_default(ctx):
    assert ctx.get("ctx.missing") is None
    assert ctx.get("ctx.missing", "fallback") == "fallback"
    assert not ctx.has("ctx.missing")


def test_write_once(ctx):
    ctx.set("a.b", 1)
    with pytest.raises(ContextError, match="Duplicate assignment") as exc_info:
        ctx.set("a.b", 1)
    assert exc_info.value.key == "a.b"


def test_extension_of_existing_path_rejected(ctx):
    ctx.set("a.b", 1)
    with pytest.raises(ContextError, match='overlaps existing variable "a.b"'):
        ctx.set("a.b.c", 2)


def test_prefix_of_existing_path_rejected(ctx):
    ctx.set("a.b.c", 1)
    with pytest.raises(ContextError, match="overlaps"):
        ctx.set("a.b", {"c": 2})


def test_siblings_allowed(ctx):
    ctx.set("a.b", 1)
    ctx.set("a.c", 2)
    assert ctx.get("a") == {"b": 1, "c": 2}
    assert ctx.assigned_keys == ["a.b", "a.c"]


@pytest.mark.parametrize("key", ["Foo", "foo-bar", "a..b", "a.B", "1abc", "", "a_b"])
def test_invalid_key_format(ctx, key):
    with pytest.raises(ContextError, match="Invalid key format"):
        ctx.set(key, "v")


def test_invalid_key_on_read(ctx):
    with pytest.raises(ContextError):
        ctx.get("Bad.key")


@pytest.mark.parametrize("key", ["name", "metadata.version", "metadata", "name.sub"])
def test_fact_paths_are_read_only(ctx, key):
    with pytest.raises(ContextError, match="conflicts with read-only value"):
        ctx.set(key, "x")


def test_facts_are_flattened_primitives(ctx):
    facts = ctx.facts_snapshot()
    assert facts["name"] == "neovim"
    assert facts["metadata.version"] == "0.10"
    assert facts["metadata.dependencies.0"] == "git"
    assert facts["installPrefix"] == "/opt"
    assert facts["flags.enabled"] is True
    assert facts["flags.nothing"] is None
    assert "when" not in facts
    assert not any(key.startswith("pipeline") for key in facts)


def test_facts_snapshot_is_a_copy(ctx):
    ctx.facts_snapshot()["name"] = "changed"
    assert ctx.get_fact("name") == "neovim"


def test_variables_snapshot_is_a_copy(ctx):
    ctx.set("ctx.items", {"a": 1})
    ctx.variables_snapshot()["ctx"]["items"]["a"] = 2
    assert ctx.get("ctx.items.a") == 1


def test_env_is_read_only():
    ctx = PipelineContext({"name": "x"}, env={"PATH": "/bin"})
    assert ctx.env["PATH"] == "/bin"
    with pytest.raises(TypeError):
        ctx.env["PATH"] = "/usr/bin"


def test_contexts_do_not_share_state():
    first = PipelineContext({"name": "a"})
    second = PipelineContext({"name": "b"})
    first.set("ctx.value", 1)
    assert not second.has("ctx.value")
