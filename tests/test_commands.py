"""Unit tests for the command queue and command loop."""
from unittest.mock import Mock, patch

import pytest

from announcer.commands import Command, CommandKind, CommandLoop, CommandQueue, LoopState
from announcer.snapshot import RegistrySnapshot
from storage.registry import DestinationRegistry


@pytest.fixture
def registry(tmp_path):
    """Create an empty registry backed by a temporary file."""
    return DestinationRegistry(tmp_path / "channels.csv")


@pytest.fixture
def snapshot():
    return RegistrySnapshot()


@pytest.fixture
def commands():
    return CommandQueue()


@pytest.fixture
def loop(registry, snapshot, commands):
    """Create a CommandLoop without on-demand announcements."""
    return CommandLoop(registry, snapshot, commands)


class TestCommandQueue:
    """Test cases for CommandQueue class."""

    def test_get_returns_commands_in_order(self, commands):
        """Test FIFO ordering of queued commands."""
        commands.put(Command(CommandKind.REGISTER, "chan-1"))
        commands.put(Command(CommandKind.UNREGISTER, "chan-2"))

        assert commands.get().destination == "chan-1"
        assert commands.get().destination == "chan-2"

    def test_close_ends_after_pending_commands(self, commands):
        """Test that closing lets queued commands drain first."""
        commands.register("chan-1")
        commands.close()

        assert commands.get().kind is CommandKind.REGISTER
        assert commands.get() is None

    def test_put_after_close_raises(self, commands):
        """Test that a closed queue rejects new commands."""
        commands.close()

        with pytest.raises(RuntimeError):
            commands.register("chan-1")


class TestCommandLoop:
    """Test cases for CommandLoop class."""

    def test_register_publishes_snapshot(self, loop, snapshot):
        """Test that a registration is visible through the snapshot."""
        result = loop.handle(Command(CommandKind.REGISTER, "chan-1"))

        assert result == ["chan-1"]
        assert snapshot.current() == ("chan-1",)

    def test_unregister_publishes_snapshot(self, loop, snapshot):
        """Test that an unregistration is visible through the snapshot."""
        loop.handle(Command(CommandKind.REGISTER, "chan-1"))
        loop.handle(Command(CommandKind.REGISTER, "chan-2"))

        result = loop.handle(Command(CommandKind.UNREGISTER, "chan-1"))

        assert result == ["chan-2"]
        assert snapshot.current() == ("chan-2",)

    def test_toggle(self, loop, snapshot):
        """Test that toggle registers then unregisters."""
        loop.handle(Command(CommandKind.TOGGLE, "chan-1"))
        assert snapshot.current() == ("chan-1",)

        loop.handle(Command(CommandKind.TOGGLE, "chan-1"))
        assert snapshot.current() == ()

    def test_persist_failure_keeps_snapshot(self, loop, snapshot, registry):
        """Test that a failed save is acknowledged as None and not published."""
        loop.handle(Command(CommandKind.REGISTER, "chan-1"))

        with patch.object(registry, "save", return_value=False):
            result = loop.handle(Command(CommandKind.REGISTER, "chan-2"))

        assert result is None
        assert snapshot.current() == ("chan-1",)
        assert registry.destinations == ["chan-1", "chan-2"]

    def test_announce_dispatches_without_touching_registry(self, registry, snapshot, commands):
        """Test that an announce command is handed to the announce callable."""
        announce = Mock()
        loop = CommandLoop(registry, snapshot, commands, announce=announce)

        result = loop.handle(Command(CommandKind.ANNOUNCE, "chan-9"))

        announce.assert_called_once_with("chan-9")
        assert result == []
        assert registry.destinations == []

    def test_announce_without_callable(self, loop):
        """Test that announce is rejected when not configured."""
        assert loop.handle(Command(CommandKind.ANNOUNCE, "chan-1")) is None

    def test_run_processes_until_closed(self, loop, commands, snapshot):
        """Test the loop drains the queue, answers replies and stops."""
        first = commands.register("chan-1")
        second = commands.register("chan-2")
        third = commands.unregister("chan-1")
        commands.close()

        loop.run()

        assert loop.state is LoopState.STOPPED
        assert first.result(timeout=1) == ["chan-1"]
        assert second.result(timeout=1) == ["chan-1", "chan-2"]
        assert third.result(timeout=1) == ["chan-2"]
        assert snapshot.current() == ("chan-2",)

    def test_run_continues_after_handler_error(self, loop, commands, registry):
        """Test that an unexpected error does not stop the loop."""
        with patch.object(registry, "add", side_effect=[RuntimeError("boom"), ["chan-2"]]):
            failed = commands.register("chan-1")
            succeeded = commands.register("chan-2")
            commands.close()
            loop.run()

        assert failed.result(timeout=1) is None
        assert succeeded.result(timeout=1) == ["chan-2"]

    def test_start_runs_on_thread(self, loop, commands, snapshot):
        """Test that start processes commands on a background thread."""
        loop.start()

        reply = commands.register("chan-1")

        assert reply.result(timeout=5) == ["chan-1"]
        assert snapshot.current() == ("chan-1",)

        commands.close()
        loop.join(timeout=5)
        assert loop.state is LoopState.STOPPED
