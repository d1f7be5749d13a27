"""Registration commands and the single consumer that applies them."""
import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from announcer.snapshot import RegistrySnapshot
from storage.registry import DestinationRegistry

logger = logging.getLogger(__name__)


class CommandKind(Enum):
    REGISTER = 'register'
    UNREGISTER = 'unregister'
    TOGGLE = 'toggle'
    ANNOUNCE = 'announce'


@dataclass
class Command:
    """A channel command from the interactions endpoint."""
    kind: CommandKind
    destination: str
    reply: Optional[Future] = field(default=None, compare=False)


class LoopState(Enum):
    RUNNING = 'running'
    STOPPED = 'stopped'


class CommandQueue:
    """Unbounded multi-producer queue feeding the command loop."""

    _CLOSED = object()

    def __init__(self):
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    def put(self, command: Command) -> None:
        """
        Enqueue a command without blocking.

        Raises:
            RuntimeError: If the queue has been closed
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Command queue is closed")
            self._queue.put_nowait(command)

    def submit(self, kind: CommandKind, destination: str) -> Future:
        """
        Enqueue a command and return a future for its acknowledgement.

        The future resolves to the full channel list once the command is
        applied, or None if it could not be persisted.
        """
        reply = Future()
        self.put(Command(kind=kind, destination=destination, reply=reply))
        return reply

    def register(self, destination: str) -> Future:
        return self.submit(CommandKind.REGISTER, destination)

    def unregister(self, destination: str) -> Future:
        return self.submit(CommandKind.UNREGISTER, destination)

    def toggle(self, destination: str) -> Future:
        return self.submit(CommandKind.TOGGLE, destination)

    def announce(self, destination: str) -> Future:
        return self.submit(CommandKind.ANNOUNCE, destination)

    def close(self) -> None:
        """Stop accepting commands; the loop stops after draining the queue."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put_nowait(self._CLOSED)

    def get(self) -> Optional[Command]:
        """Block for the next command, returning None once the queue is closed."""
        item = self._queue.get()
        if item is self._CLOSED:
            return None
        return item


class CommandLoop:
    """Sole writer of the registry, applying commands in arrival order."""

    def __init__(
        self,
        registry: DestinationRegistry,
        snapshot: RegistrySnapshot,
        commands: CommandQueue,
        announce: Optional[Callable[[str], Any]] = None
    ):
        """
        Initialize the command loop.

        Args:
            registry: Registry owned by this loop
            snapshot: Cell the scheduler reads the channel list from
            commands: Inbound command queue
            announce: Non-blocking callable starting an on-demand announcement
        """
        self.registry = registry
        self.snapshot = snapshot
        self.commands = commands
        self.announce = announce
        self.state = LoopState.RUNNING
        self._thread: Optional[threading.Thread] = None

    def handle(self, command: Command) -> Optional[List[str]]:
        """
        Apply a single command.

        Args:
            command: Command to apply

        Returns:
            The full channel list, or None if the command could not be applied
        """
        if command.kind is CommandKind.REGISTER:
            result = self.registry.add(command.destination)
        elif command.kind is CommandKind.UNREGISTER:
            result = self.registry.remove(command.destination)
        elif command.kind is CommandKind.TOGGLE:
            result = self.registry.toggle(command.destination)
        elif command.kind is CommandKind.ANNOUNCE:
            if self.announce is None:
                logger.warning("On-demand announcements are not configured")
                return None
            self.announce(command.destination)
            return self.registry.destinations
        else:
            raise ValueError(f"Unknown command kind: {command.kind}")

        if result is not None:
            self.snapshot.publish(result)
        else:
            logger.warning(
                f"{command.kind.value} for {command.destination!r} could not be applied "
                f"or persisted"
            )
        return result

    def run(self) -> None:
        """Process commands until the queue is closed."""
        logger.info("Command loop started")

        while self.state is LoopState.RUNNING:
            command = self.commands.get()
            if command is None:
                self.state = LoopState.STOPPED
                break

            try:
                result = self.handle(command)
            except Exception as e:
                logger.error(
                    f"Failed to handle {command.kind.value} for {command.destination}: {e}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                result = None

            if command.reply is not None and not command.reply.done():
                command.reply.set_result(result)

        logger.info("Command loop stopped")

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread."""
        self._thread = threading.Thread(target=self.run, name='command-loop', daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
