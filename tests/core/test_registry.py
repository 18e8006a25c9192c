"""Tests for the tool registry and the generated step/element schemas."""

import pytest
from pydantic import ValidationError

from ldde.exceptions import ToolRegistrationError
from ldde.models import ToolParams
from ldde.tools import Tool, ToolRegistry, default_registry
from ldde.tools.execute_bash_command import ExecuteBashCommandParams

BUILTIN = [
    "clone-repository",
    "execute-bash-command",
    "safe-cleanup",
    "install-binary",
    "install-manpages",
    "js-global-install",
]


class NoName(Tool):
    def execute(self, params, context):
        pass


class BadParams(Tool):
    name = "bad"
    params_model = dict

    def execute(self, params, context):
        pass


def test_default_registry_has_builtins():
    registry = default_registry()
    assert registry.names() == BUILTIN
    assert "clone-repository" in registry
    assert [tool.name for tool in registry] == BUILTIN
    assert len(registry) == 6


def test_duplicate_registration_rejected(recording_tool):
    registry = ToolRegistry()
    registry.register(recording_tool)
    with pytest.raises(ToolRegistrationError, match="already registered"):
        registry.register(type(recording_tool)())


@pytest.mark.parametrize("tool, message", [(NoName(), "has no name"), (BadParams(), "params_model")])
def test_invalid_tools_rejected(tool, message):
    with pytest.raises(ToolRegistrationError, match=message):
        ToolRegistry().register(tool)


def test_unknown_tool_lookup():
    with pytest.raises(KeyError, match="Unknown tool: nope"):
        default_registry().get("nope")


def test_empty_registry_has_no_step_model():
    with pytest.raises(ToolRegistrationError):
        ToolRegistry().step_model()


def test_element_model_accepts_valid_descriptor():
    model = default_registry().element_model()
    element = model.model_validate(
        {
            "name": "neovim",
            "metadata": {"version": "0.10", "dependencies": ["git"]},
            "pipeline": [
                {"tool": "clone-repository", "with": {"url": "https://github.com/neovim/neovim.git", "commit-sha": "abc"}},
                {"tool": "execute-bash-command", "with": {"command": "make", "working-directory": "${{ ctx.cloneRepositoryOutput }}"}},
            ],
        }
    )
    assert element.dependencies == ["git"]
    assert element.version == "0.10"
    first, second = element.pipeline
    assert first.tool == "clone-repository"
    assert first.with_.commit_sha == "abc"
    assert second.with_.working_directory == "${{ ctx.cloneRepositoryOutput }}"


@pytest.mark.parametrize(
    "step",
    [
        {"tool": "not-a-tool", "with": {}},
        {"tool": "clone-repository", "with": {}},
        {"tool": "clone-repository", "with": {"url": "u", "unexpected": 1}},
        {"tool": "clone-repository", "with": {"command": "ls"}},
        {"tool": "safe-cleanup", "with": {"paths": []}},
        {"tool": "execute-bash-command", "with": {"command": "ls", "shell": "csh"}},
        {"tool": "execute-bash-command", "with": {"command": "ls"}, "extra": True},
        {"with": {"command": "ls"}},
    ],
)
def test_invalid_steps_rejected(step):
    model = default_registry().element_model()
    with pytest.raises(ValidationError):
        model.model_validate({"name": "x", "pipeline": [step]})


def test_pipeline_must_not_be_empty():
    model = default_registry().element_model()
    with pytest.raises(ValidationError):
        model.model_validate({"name": "x", "pipeline": []})


def test_metadata_rejects_unknown_keys():
    model = default_registry().element_model()
    with pytest.raises(ValidationError):
        model.model_validate(
            {"name": "x", "metadata": {"tags": []}, "pipeline": [{"tool": "safe-cleanup", "with": {"paths": ["/tmp/x"]}}]}
        )


def test_single_tool_registry_still_validates(registry):
    model = registry.element_model()
    element = model.model_validate({"name": "x", "pipeline": [{"tool": "record", "with": {"message": "hi"}}]})
    assert element.pipeline[0].with_.message == "hi"
    with pytest.raises(ValidationError):
        model.model_validate({"name": "x", "pipeline": [{"tool": "other", "with": {"message": "hi"}}]})


def test_schema_uses_descriptor_names():
    schema = default_registry().get("clone-repository").schema()
    assert set(schema["properties"]) == {"url", "branch", "commit-sha", "output-assign"}
    assert schema["required"] == ["url"]
    assert schema["additionalProperties"] is False


def test_params_accept_hyphenated_and_python_names():
    by_alias = ExecuteBashCommandParams.model_validate({"command": "ls", "working-directory": "/tmp"})
    by_name = ExecuteBashCommandParams(command="ls", working_directory="/tmp")
    assert by_alias.working_directory == by_name.working_directory == "/tmp"
    assert by_alias.exit_on_non_zero_code is True


def test_tool_params_forbid_extra():
    class Params(ToolParams):
        value: str

    with pytest.raises(ValidationError):
        Params.model_validate({"value": "x", "other": "y"})
