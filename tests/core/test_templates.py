"""Tests for template expansion."""

import pytest

from ldde.context import (
    PipelineContext,
    extract_variable_paths,
    has_template_expressions,
    is_assignment_expression,
    parse_assignment_expression,
    process_template,
)
from ldde.exceptions import TemplateError


@pytest.fixture
def ctx():
    return PipelineContext({"name": "tmux", "metadata": {"version": "3.4"}})


def test_variable_round_trip(ctx):
    ctx.set("ctx.x", "v")
    assert ctx.process_template("${{ ctx.x }}") == "v"


def test_facts_resolve(ctx):
    assert ctx.process_template("${{ name }}@${{ metadata.version }}") == "tmux@3.4"


def test_whitespace_inside_braces_is_optional(ctx):
    ctx.set("ctx.x", "v")
    assert ctx.process_template("${{ctx.x}}-${{   ctx.x   }}") == "v-v"


def test_multiple_occurrences_single_pass(ctx):
    ctx.set("ctx.a", "${{ ctx.b }}")
    ctx.set("ctx.b", "B")
    # substituted text is never rescanned
    assert ctx.process_template("${{ ctx.a }} ${{ ctx.b }}") == "${{ ctx.b }} B"


def test_text_without_expressions_untouched(ctx):
    assert ctx.process_template("echo $HOME ${PATH} {{ x }}") == "echo $HOME ${PATH} {{ x }}"


def test_undefined_variable(ctx):
    with pytest.raises(TemplateError, match='"ctx.missing" is undefined') as exc_info:
        ctx.process_template("${{ ctx.missing }}")
    assert exc_info.value.path == "ctx.missing"


@pytest.mark.parametrize("value", [{"a": 1}, [1, 2]])
def test_non_primitive_rejected(ctx, value):
    ctx.set("ctx.obj", value)
    with pytest.raises(TemplateError, match="non-primitive"):
        ctx.process_template("${{ ctx.obj }}")


def test_nested_traversal(ctx):
    ctx.set("ctx.obj", {"inner": {"leaf": 7}})
    assert ctx.process_template("${{ ctx.obj.inner.leaf }}") == "7"


@pytest.mark.parametrize(
    "value, expected",
    [(True, "true"), (False, "false"), (None, "null"), (3, "3"), (3.0, "3"), (2.5, "2.5")],
)
def test_primitive_stringification(ctx, value, expected):
    ctx.set("ctx.value", value)
    assert ctx.process_template("${{ ctx.value }}") == expected


def test_invalid_segment_in_template(ctx):
    with pytest.raises(TemplateError, match="Invalid key format"):
        ctx.process_template("${{ ctx.Bad }}")


@pytest.mark.parametrize("text", ["$>{{ ctx.out }}", "$>{{ctx.out}}", "$>{{ never.set }}"])
def test_assignment_expression_unchanged(ctx, text):
    assert ctx.process_template(text) == text


def test_assignment_only_when_whole_string(ctx):
    with pytest.raises(TemplateError):
        ctx.process_template("prefix ${{ ctx.out }} $>{{ ctx.out }}")


def test_object_template_recurses(ctx):
    ctx.set("ctx.dir", "/tmp/clone")
    value = {
        "command": "cd ${{ ctx.dir }}",
        "flags": [True, 3, None],
        "prompts": [{"match": "Name?", "response": "${{ name }}"}],
        "output-assign": "$>{{ ctx.out }}",
    }
    result = ctx.process_object_template(value)
    assert result == {
        "command": "cd /tmp/clone",
        "flags": [True, 3, None],
        "prompts": [{"match": "Name?", "response": "tmux"}],
        "output-assign": "$>{{ ctx.out }}",
    }
    assert value["command"] == "cd ${{ ctx.dir }}"


def test_collision_between_namespaces_is_an_error():
    facts = {"ctx": "fact"}
    variables = {"ctx": {"x": 1}}
    with pytest.raises(TemplateError, match="conflict with read-only keys: ctx"):
        process_template("${{ ctx.x }}", facts, variables)


def test_literal_key_looked_up_before_traversal():
    facts = {"metadata.version": "1.0"}
    assert process_template("${{ metadata.version }}", facts, {}) == "1.0"


def test_expression_helpers():
    text = "a ${{ one }} b ${{two.three}}"
    assert has_template_expressions(text)
    assert not has_template_expressions("plain")
    assert extract_variable_paths(text) == ["one", "two.three"]
    assert is_assignment_expression("$>{{ ctx.out }}")
    assert not is_assignment_expression("x $>{{ ctx.out }}")
    assert parse_assignment_expression("$>{{  ctx.out  }}") == "ctx.out"
    assert parse_assignment_expression("ctx.out") is None
