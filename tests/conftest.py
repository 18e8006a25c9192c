"""Pytest configuration and shared fixtures."""

import textwrap
import threading

import pytest
from click.testing import CliRunner

from ldde.cli.context import LddeContext
from ldde.cli.main import cli
from ldde.exceptions import ToolError
from ldde.models import ToolParams
from ldde.tools import Tool, ToolRegistry, output_key


class RecordParams(ToolParams):
    message: str
    output_assign: str | None = None
    fail: bool = False


class RecordingTool(Tool):
    """Records ``(element name, message)`` per call; can publish or fail."""

    name = "record"
    params_model = RecordParams
    description = "Record messages (tests only)"

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def execute(self, params, context):
        with self._lock:
            self.calls.append((context.get_fact("name"), params.message))
        if params.fail:
            raise ToolError(f"boom: {params.message}")
        key = output_key(params.output_assign)
        if key:
            context.set(key, params.message)

    @property
    def messages(self):
        return [message for _, message in self.calls]

    @property
    def elements(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def recording_tool():
    return RecordingTool()


@pytest.fixture
def registry(recording_tool):
    """Registry holding only the recording tool."""
    reg = ToolRegistry()
    reg.register(recording_tool)
    return reg


@pytest.fixture
def make_element(registry):
    """Build a validated element for ``registry``.

    Usage:
        make_element("a", ["hello"], deps=["b"])
        make_element("a", [{"message": "x", "fail": True}])
    """

    def _make(name, messages, deps=None, **extra):
        steps = []
        for message in messages:
            params = {"message": message} if isinstance(message, str) else message
            steps.append({"tool": "record", "with": params})
        data = {"name": name, "pipeline": steps, **extra}
        if deps:
            data["metadata"] = {"dependencies": list(deps)}
        return registry.element_model().model_validate(data)

    return _make


@pytest.fixture
def workspace(tmp_path):
    """Create a workspace with a ``configs`` storage dir and element files.

    Usage:
        root = workspace({"a.yml": "name: a\\npipeline: ..."})
    """

    def _make(files, storage="configs"):
        root = tmp_path / "workspace"
        root.mkdir(exist_ok=True)
        if storage:
            (root / storage).mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel if "/" in rel else root / "elements" / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content))
        return root

    return _make


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner):
    """Helper to invoke the CLI with args and an optional registry.

    Usage:
        result = invoke(["--root", str(root), "install"], registry=registry)
        result = invoke(["tools"])  # default built-in registry
    """

    def _invoke(args, input_data=None, env=None, registry=None):
        obj = LddeContext(registry_factory=lambda: registry) if registry is not None else None
        return cli_runner.invoke(cli, args, input=input_data, env=env, obj=obj)

    return _invoke
