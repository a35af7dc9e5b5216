"""Discrete-event simulation kernel: messages, modules and the event loop."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union


@dataclass(eq=False)
class Message:
    """An event delivered to a module: a self-message or one sent by another module."""

    name: str = ""
    kind: int = 0
    arrival_time: float = field(default=0.0, repr=False)


@dataclass(eq=False)
class _Entry:
    time: float
    seq: int
    module: "Module"
    message: Message
    cancelled: bool = False


class Simulation:
    """Holds the modules, the future-event set and the recorded statistics."""

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[tuple[float, int, _Entry]] = []
        self._pending: dict[int, _Entry] = {}
        self._counter = itertools.count()
        self._modules: dict[str, Module] = {}
        self._signals: dict[tuple[str, str], list[tuple[float, Any]]] = {}
        self.scalars: dict[tuple[str, str], Any] = {}
        self._started = False

    @property
    def now(self) -> float:
        """Current simulation time."""
        return self._now

    @property
    def modules(self) -> list["Module"]:
        """Registered modules in the order they were added."""
        return list(self._modules.values())

    def _resolve(self, module: Union["Module", str]) -> "Module":
        if isinstance(module, str):
            return self.module(module)
        if module.sim is not self:
            raise ValueError(f"module {module.name!r} belongs to another simulation")
        return module

    @staticmethod
    def _source_name(source: Union["Module", str]) -> str:
        return source if isinstance(source, str) else source.name

    def schedule_at(self, time: float, module: Union["Module", str], message: Message) -> None:
        """Deliver ``message`` to ``module`` at simulation time ``time``."""
        if time < self._now:
            raise ValueError(f"cannot schedule at {time}, which is before now ({self._now})")
        if id(message) in self._pending:
            raise ValueError(f"message {message.name!r} is already scheduled")
        target = self._resolve(module)
        entry = _Entry(time, next(self._counter), target, message)
        self._pending[id(message)] = entry
        heapq.heappush(self._queue, (entry.time, entry.seq, entry))

    def cancel_event(self, message: Message) -> Message:
        """Remove ``message`` from the future-event set if it is there."""
        entry = self._pending.pop(id(message), None)
        if entry is not None:
            entry.cancelled = True
        return message

    def is_scheduled(self, message: Message) -> bool:
        return id(message) in self._pending

    def send(self, message: Message, module: Union["Module", str]) -> None:
        """Deliver ``message`` to ``module`` at the current time."""
        self.schedule_at(self._now, module, message)

    def add_module(self, module: "Module") -> "Module":
        """Register ``module``; it is initialized now if the simulation has started."""
        if module.name in self._modules:
            raise ValueError(f"a module named {module.name!r} already exists")
        if module.sim is not None and module.sim is not self:
            raise ValueError(f"module {module.name!r} belongs to another simulation")
        module.sim = self
        self._modules[module.name] = module
        if self._started:
            module.initialize()
        return module

    def module(self, name: str) -> "Module":
        try:
            return self._modules[name]
        except KeyError:
            raise KeyError(f"no module named {name!r}") from None

    def emit(self, source: Union["Module", str], signal: str, value: Any) -> None:
        """Record ``value`` on ``signal`` of ``source`` at the current time."""
        key = (self._source_name(source), signal)
        self._signals.setdefault(key, []).append((self._now, value))

    def record_scalar(self, source: Union["Module", str], name: str, value: Any) -> None:
        self.scalars[(self._source_name(source), name)] = value

    def signal_values(self, source: Union["Module", str], signal: str) -> list[tuple[float, Any]]:
        """All ``(time, value)`` pairs emitted on ``signal`` by ``source``."""
        return list(self._signals.get((self._source_name(source), signal), []))

    def _start(self) -> None:
        if not self._started:
            self._started = True
            for module in list(self._modules.values()):
                module.initialize()

    def _peek(self) -> Optional[_Entry]:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0][2] if self._queue else None

    def step(self) -> bool:
        """Process the next event; return False when none is left."""
        self._start()
        entry = self._peek()
        if entry is None:
            return False
        heapq.heappop(self._queue)
        del self._pending[id(entry.message)]
        self._now = entry.time
        entry.message.arrival_time = entry.time
        entry.module.handle_message(entry.message)
        return True

    def run(self, until: Optional[float] = None) -> int:
        """Run events up to time ``until`` (or until none remain), then finish modules.

        Returns the number of events processed.
        """
        self._start()
        processed = 0
        while True:
            entry = self._peek()
            if entry is None or (until is not None and entry.time > until):
                break
            self.step()
            processed += 1
        if until is not None and until > self._now:
            self._now = until
        for module in list(self._modules.values()):
            module.finish()
        return processed


class Module:
    """A simulation component that reacts to messages."""

    def __init__(self, name: str, params: Optional[Mapping[str, Any]] = None) -> None:
        self.name = name
        self.params: dict[str, Any] = dict(params or {})
        self.sim: Optional[Simulation] = None
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None

    def _simulation(self) -> Simulation:
        if self.sim is None:
            raise RuntimeError(f"module {self.name!r} is not part of a simulation")
        return self.sim

    @property
    def now(self) -> float:
        return self._simulation().now

    def par(self, name: str) -> Any:
        """Value of parameter ``name``; callables are drawn anew on each access."""
        try:
            value = self.params[name]
        except KeyError:
            raise KeyError(f"module {self.name!r} has no parameter {name!r}") from None
        if callable(value):
            return value()
        return value

    def initialize(self) -> None:
        """Called once when the simulation starts; records the start time."""
        self.started_at = self.now

    def handle_message(self, message: Message) -> None:
        raise RuntimeError(f"module {self.name!r} does not handle messages")

    def finish(self) -> None:
        """Called when a run ends; records the finish time."""
        self.finished_at = self.now

    def emit(self, signal: str, value: Any) -> None:
        self._simulation().emit(self, signal, value)

    def schedule_at(self, time: float, message: Message) -> None:
        self._simulation().schedule_at(time, self, message)

    def cancel_event(self, message: Message) -> Message:
        return self._simulation().cancel_event(message)

    def send(self, message: Message, target: Union["Module", str]) -> None:
        self._simulation().send(message, target)

    def record_scalar(self, name: str, value: Any) -> None:
        self._simulation().record_scalar(self, name, value)


ParamValue = Union[Any, Callable[[], Any]]