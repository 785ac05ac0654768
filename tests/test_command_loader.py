"""Tests for loading commands from settings import specs."""

from signalbot.command import Command
from signalbot.command_loader import load_command, load_commands

_MODULE = '''
from signalbot.command import Command


class Ping(Command):
    async def handle(self, context):
        return context.starts_with("ping")


class Broken(Command):
    def __init__(self):
        raise RuntimeError("needs arguments")

    async def handle(self, context):
        return False


class NotACommand:
    pass
'''


def _write_module(tmp_path, monkeypatch, name="loader_fixture_cmds"):
    (tmp_path / f"{name}.py").write_text(_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


def test_load_valid_spec(tmp_path, monkeypatch):
    mod = _write_module(tmp_path, monkeypatch)
    command = load_command(f"{mod}:Ping")
    assert isinstance(command, Command)
    assert command.name == "Ping"


def test_invalid_spec_format_skipped():
    assert load_command("no-colon-here") is None
    assert load_command("a.b:") is None


def test_missing_module_skipped():
    assert load_command("definitely_not_a_module_xyz:Thing") is None


def test_missing_class_skipped(tmp_path, monkeypatch):
    mod = _write_module(tmp_path, monkeypatch, name="loader_fixture_missing")
    assert load_command(f"{mod}:Nope") is None


def test_init_failure_skipped(tmp_path, monkeypatch):
    mod = _write_module(tmp_path, monkeypatch, name="loader_fixture_broken")
    assert load_command(f"{mod}:Broken") is None


def test_object_without_handle_skipped(tmp_path, monkeypatch):
    mod = _write_module(tmp_path, monkeypatch, name="loader_fixture_nohandle")
    assert load_command(f"{mod}:NotACommand") is None


def test_abstract_base_cannot_be_loaded():
    assert load_command("signalbot.command:Command") is None


def test_load_commands_keeps_order_and_skips_failures(tmp_path, monkeypatch):
    mod = _write_module(tmp_path, monkeypatch, name="loader_fixture_order")
    commands = load_commands([
        f"{mod}:Ping",
        f"{mod}:Broken",
        "missing_module_xyz:Thing",
        f"{mod}:Ping",
    ])
    assert len(commands) == 2
    assert all(c.name == "Ping" for c in commands)
    assert commands[0] is not commands[1]
