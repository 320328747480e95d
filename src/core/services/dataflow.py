"""Explicit dataflow graph of named signals.

A graph holds two kinds of nodes:

- *source* nodes, written from outside with :meth:`DataflowGraph.set`;
- *derived* nodes, computed by a pure function of their declared inputs.

Writes are pushed through the graph in topological (rank) order, so every
derived node is recomputed at most once per reaction and always sees inputs
that are already up to date. A node whose recomputed value compares equal to
its previous value does not wake its dependents. Watchers run only after the
whole reaction has settled; a watcher that writes to the graph schedules a
follow-up reaction instead of re-entering the current one.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

logger = logging.getLogger("signup_guard.dataflow")

Watcher = Callable[[Any], None]


class Node:
    """A named signal in a :class:`DataflowGraph`."""

    __slots__ = ("name", "inputs", "compute", "rank", "value", "dependents", "watchers")

    def __init__(
        self,
        name: str,
        *,
        value: Any,
        inputs: Sequence["Node"] = (),
        compute: Callable[..., Any] | None = None,
    ) -> None:
        self.name = name
        self.inputs = tuple(inputs)
        self.compute = compute
        self.rank = 1 + max((node.rank for node in self.inputs), default=-1)
        self.value = value
        self.dependents: list[Node] = []
        self.watchers: list[Watcher] = []

    @property
    def is_source(self) -> bool:
        return self.compute is None

    def __repr__(self) -> str:
        kind = "source" if self.is_source else "derived"
        return f"<Node {self.name!r} {kind} rank={self.rank} value={self.value!r}>"


class DataflowGraph:
    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._reacting = False
        self._pending: list[dict[Node, Any]] = []
        self._order = itertools.count()

    def source(self, name: str, initial: Any = None) -> Node:
        return self._register(Node(name, value=initial))

    def derive(self, name: str, inputs: Sequence[Node], fn: Callable[..., Any]) -> Node:
        """Declare a derived node; ``fn`` receives the input values positionally."""

        for node in inputs:
            if self._nodes.get(node.name) is not node:
                raise ValueError(f"input {node.name!r} does not belong to this graph")
        node = Node(name, value=fn(*(i.value for i in inputs)), inputs=inputs, compute=fn)
        for upstream in inputs:
            upstream.dependents.append(node)
        return self._register(node)

    def _register(self, node: Node) -> Node:
        if node.name in self._nodes:
            raise ValueError(f"duplicate node name: {node.name!r}")
        self._nodes[node.name] = node
        return node

    def nodes(self) -> Iterable[Node]:
        return sorted(self._nodes.values(), key=lambda n: (n.rank, n.name))

    def value(self, node: Node | str) -> Any:
        if isinstance(node, str):
            node = self._nodes[node]
        return node.value

    def set(self, node: Node, value: Any) -> None:
        self.set_many({node: value})

    def set_many(self, updates: Mapping[Node, Any]) -> None:
        """Write several sources in one reaction."""

        for node in updates:
            if not node.is_source:
                raise TypeError(f"cannot set derived node {node.name!r}")
        if self._reacting:
            self._pending.append(dict(updates))
            return

        # Writes queued by watchers are applied even when a watcher raised.
        self._reacting = True
        failure: Exception | None = None
        batch: dict[Node, Any] | None = dict(updates)
        try:
            while batch is not None:
                try:
                    self._react(batch)
                except Exception as exc:
                    if failure is None:
                        failure = exc
                    else:
                        logger.exception("reaction raised after an earlier failure")
                batch = self._pending.pop(0) if self._pending else None
        finally:
            self._reacting = False
            self._pending.clear()
        if failure is not None:
            raise failure

    def watch(self, node: Node, callback: Watcher, *, immediate: bool = False) -> Callable[[], None]:
        """Call ``callback(value)`` after each reaction that changes ``node``.

        Returns a function that removes the watcher.
        """

        node.watchers.append(callback)
        if immediate:
            callback(node.value)

        def unsubscribe() -> None:
            if callback in node.watchers:
                node.watchers.remove(callback)

        return unsubscribe

    def _react(self, updates: dict[Node, Any]) -> None:
        changed: list[Node] = []
        queue: list[tuple[int, int, Node]] = []
        queued: set[str] = set()

        def enqueue_dependents(node: Node) -> None:
            for dependent in node.dependents:
                if dependent.name not in queued:
                    queued.add(dependent.name)
                    heapq.heappush(queue, (dependent.rank, next(self._order), dependent))

        for node, value in updates.items():
            if node.value == value:
                continue
            node.value = value
            changed.append(node)
            enqueue_dependents(node)

        while queue:
            _, _, node = heapq.heappop(queue)
            new_value = node.compute(*(i.value for i in node.inputs))
            if new_value == node.value:
                continue
            node.value = new_value
            changed.append(node)
            enqueue_dependents(node)

        if changed:
            logger.debug("reaction changed %s", ", ".join(n.name for n in changed))

        # Every watcher runs even if an earlier one raises; the first error
        # is re-raised once all of them have been called.
        failure: Exception | None = None
        for node in changed:
            for callback in list(node.watchers):
                try:
                    callback(node.value)
                except Exception as exc:
                    if failure is not None:
                        logger.exception("another watcher of %r raised", node.name)
                        continue
                    failure = exc
        if failure is not None:
            raise failure
