"""In-memory step/connection store.

The store is the canonical graph. Every mutation runs to completion
synchronously; lookups on unknown ids degrade to logged no-ops.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .model import MUTABLE_STEP_FIELDS, Connection, ConnectionType, Step, StepType
from .tree import StepTree

logger = logging.getLogger(__name__)

# Window in which a repeated (from, to, type) request is treated as a double-fire
DEFAULT_DEBOUNCE_SECONDS = 0.5

ConnectionKey = Tuple[str, str, ConnectionType]


class StoreError(ValueError):
    """Raised for structurally invalid store mutations."""

    pass


class UnknownParentError(StoreError):
    """Raised when parent_id references no step."""

    pass


class ParentCycleError(StoreError):
    """Raised when a parent assignment would make a step its own ancestor."""

    pass


class StepStore:
    """Canonical graph of steps and typed connections.

    Parameters
    ----------
    debounce_seconds : float
        Repeated ``add_connection`` calls for the same triple within this
        window collapse into one insert.
    clock : Callable[[], float], optional
        Monotonic time source in seconds. Default: ``time.monotonic``.
    id_factory : Callable[[], str], optional
        Generator for step and connection ids. Default: uuid4 strings.

    Example
    -------
    >>> store = StepStore()
    >>> login = store.add_step("Login")
    >>> dash = store.add_step("Dashboard")
    >>> store.add_connection(login, dash, "success")
    True
    """

    def __init__(
        self,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.debounce_seconds = debounce_seconds
        self._clock = clock or time.monotonic
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._steps: Dict[str, Step] = {}
        self._connections: List[Connection] = []
        self._connection_keys: Set[ConnectionKey] = set()
        # Last add_connection request: (triple, timestamp)
        self._last_connection_request: Optional[Tuple[ConnectionKey, float]] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def steps(self) -> List[Step]:
        """Steps in insertion order."""
        return list(self._steps.values())

    @property
    def connections(self) -> List[Connection]:
        """Connections in insertion order."""
        return list(self._connections)

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def get_step(self, step_id: str) -> Optional[Step]:
        return self._steps.get(step_id)

    def outgoing(self, step_id: str) -> List[Connection]:
        """Connections leaving step_id, in insertion order."""
        return [c for c in self._connections if c.from_step_id == step_id]

    def incoming(self, step_id: str) -> List[Connection]:
        """Connections entering step_id, in insertion order."""
        return [c for c in self._connections if c.to_step_id == step_id]

    def has_connection(
        self, from_step_id: str, to_step_id: str, conn_type: Union[ConnectionType, str]
    ) -> bool:
        key = (from_step_id, to_step_id, ConnectionType.coerce(conn_type))
        return key in self._connection_keys

    def tree(self) -> StepTree:
        """Snapshot of the parent hierarchy."""
        return StepTree(self._steps.values())

    def qualified_name(self, step: Union[Step, str]) -> str:
        """Ancestor names joined by " > ", ending with the step's own name."""
        step_id = step.id if isinstance(step, Step) else step
        return self.tree().qualified_name(step_id)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def add_step(self, name: str, **fields: Any) -> str:
        """Insert a new step and return its freshly allocated id.

        Parameters
        ----------
        name : str
            Display name
        **fields
            Any of alias, description, type, parent_id, assumptions,
            questions, image_urls, position

        Raises
        ------
        UnknownParentError
            If parent_id is given and references no step
        ValueError
            For unknown field names or an invalid type
        """
        fields = self._prepare_fields(fields)
        parent_id = fields.get("parent_id")
        if parent_id is not None and parent_id not in self._steps:
            raise UnknownParentError(f"Parent step not found: {parent_id}")

        step = Step(id=self._id_factory(), name=name)
        self._apply_fields(step, fields)
        self._steps[step.id] = step
        logger.debug("Added step %s (%r)", step.id, name)
        return step.id

    def update_step(self, step_id: str, **changes: Any) -> bool:
        """Merge changes into an existing step.

        Returns False (and logs) if step_id is unknown.

        Raises
        ------
        UnknownParentError
            If a new parent_id references no step
        ParentCycleError
            If the new parent_id would make the step its own ancestor
        ValueError
            For unknown field names or an invalid type; nothing is changed
        """
        step = self._steps.get(step_id)
        if step is None:
            logger.warning("update_step ignored: step not found: %s", step_id)
            return False

        changes = self._prepare_fields(changes)
        if "parent_id" in changes:
            parent_id = changes["parent_id"]
            if parent_id is not None and parent_id not in self._steps:
                raise UnknownParentError(f"Parent step not found: {parent_id}")
            if self.tree().would_create_cycle(step_id, parent_id):
                raise ParentCycleError(
                    f"Setting parent of {step_id} to {parent_id} creates a cycle"
                )

        self._apply_fields(step, changes)
        logger.debug("Updated step %s: %s", step_id, sorted(changes))
        return True

    def remove_step(self, step_id: str) -> bool:
        """Delete a step and every connection touching it.

        Children are re-attached to the removed step's parent. Returns False
        (and logs) if step_id is unknown.
        """
        step = self._steps.pop(step_id, None)
        if step is None:
            logger.warning("remove_step ignored: step not found: %s", step_id)
            return False

        for child in self._steps.values():
            if child.parent_id == step_id:
                child.parent_id = step.parent_id

        kept = [
            c for c in self._connections
            if c.from_step_id != step_id and c.to_step_id != step_id
        ]
        removed = len(self._connections) - len(kept)
        self._connections = kept
        self._connection_keys = {c.key for c in kept}
        logger.info(
            "Removed step %r and %d associated connection(s)", step.name, removed
        )
        return True

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def add_connection(
        self,
        from_step_id: str,
        to_step_id: str,
        conn_type: Union[ConnectionType, str] = ConnectionType.SUCCESS,
    ) -> bool:
        """Insert a connection; True if a new connection was stored.

        Returns False without mutating when the same triple was requested
        within the debounce window, when the triple already exists, or when
        either endpoint is unknown.
        """
        conn_type = ConnectionType.coerce(conn_type)
        key = (from_step_id, to_step_id, conn_type)

        now = self._clock()
        last = self._last_connection_request
        if last is not None and last[0] == key and now - last[1] < self.debounce_seconds:
            logger.debug("Ignoring duplicate connection request within debounce window")
            return False
        self._last_connection_request = (key, now)

        if key in self._connection_keys:
            logger.info(
                "Connection already exists: %s -> %s (%s)",
                from_step_id, to_step_id, conn_type.value,
            )
            return False

        for endpoint in (from_step_id, to_step_id):
            if endpoint not in self._steps:
                logger.warning("add_connection ignored: step not found: %s", endpoint)
                return False

        self._insert_connection(
            Connection(from_step_id, to_step_id, conn_type, id=self._id_factory())
        )
        return True

    def remove_connection(
        self,
        from_step_id: str,
        to_step_id: str,
        conn_type: Union[ConnectionType, str],
    ) -> bool:
        """Remove the exact matching triple. False (logged) if absent."""
        key = (from_step_id, to_step_id, ConnectionType.coerce(conn_type))
        if key not in self._connection_keys:
            logger.warning(
                "remove_connection ignored: no %s connection %s -> %s",
                key[2].value, from_step_id, to_step_id,
            )
            return False
        self._connections = [c for c in self._connections if c.key != key]
        self._connection_keys.discard(key)
        return True

    def clear(self) -> None:
        """Remove all steps and connections."""
        logger.info(
            "Clearing %d step(s) and %d connection(s)",
            len(self._steps), len(self._connections),
        )
        self._steps.clear()
        self._connections.clear()
        self._connection_keys.clear()
        self._last_connection_request = None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize steps and connections to plain dicts."""
        return {
            "steps": [step.to_dict() for step in self._steps.values()],
            "connections": [conn.to_dict() for conn in self._connections],
        }

    def load(
        self,
        steps: Iterable[Union[Step, Dict[str, Any]]],
        connections: Iterable[Union[Connection, Dict[str, Any]]] = (),
    ) -> None:
        """Replace the store contents with imported steps and connections.

        Imported data is repaired rather than rejected: missing parents are
        detached, ancestor cycles are broken at their first member, and
        connections that are duplicated, untyped or reference unknown
        steps are dropped. Steps without an id are skipped and an unknown
        step type is cleared. Each repair is logged as a warning.
        """
        self.clear()
        for item in steps:
            step = self._import_step(item)
            if step is None:
                continue
            if step.id in self._steps:
                logger.warning("Skipping duplicate step id on load: %s", step.id)
                continue
            self._steps[step.id] = step

        for step in self._steps.values():
            if step.parent_id is not None and step.parent_id not in self._steps:
                logger.warning(
                    "Step %r references missing parent %s; detaching",
                    step.name, step.parent_id,
                )
                step.parent_id = None

        for cycle in self.tree().find_parent_cycles():
            head = self._steps[cycle[0]]
            logger.warning(
                "Parent cycle through %d step(s); detaching %r", len(cycle), head.name
            )
            head.parent_id = None

        for item in connections:
            try:
                conn = item if isinstance(item, Connection) else Connection.from_dict(item)
            except ValueError as e:
                logger.warning("Skipping connection with invalid type: %s", e)
                continue
            if conn.from_step_id not in self._steps or conn.to_step_id not in self._steps:
                logger.warning(
                    "Skipping connection with unknown endpoint: %s -> %s",
                    conn.from_step_id, conn.to_step_id,
                )
                continue
            if conn.key in self._connection_keys:
                logger.warning(
                    "Skipping duplicate connection: %s -> %s (%s)",
                    conn.from_step_id, conn.to_step_id, conn.type.value,
                )
                continue
            if not conn.id:
                conn = Connection(*conn.key, id=self._id_factory())
            self._insert_connection(conn)

        logger.info(
            "Loaded %d step(s) and %d connection(s)",
            len(self._steps), len(self._connections),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs: Any) -> "StepStore":
        """Build a store from a ``{"steps": [...], "connections": [...]}`` dict."""
        store = cls(**kwargs)
        store.load(data.get("steps") or [], data.get("connections") or [])
        return store

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _insert_connection(self, conn: Connection) -> None:
        self._connections.append(conn)
        self._connection_keys.add(conn.key)

    @staticmethod
    def _prepare_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and coerce every field before any of them is applied."""
        unknown = set(fields) - MUTABLE_STEP_FIELDS
        if unknown:
            raise ValueError(f"Unknown step field(s): {sorted(unknown)}")
        prepared: Dict[str, Any] = {}
        for name, value in fields.items():
            if name == "type" and value is not None:
                value = StepType.coerce(value)
            elif name in ("assumptions", "questions", "image_urls"):
                value = list(value or [])
            elif name == "position":
                value = dict(value or {"x": 0, "y": 0})
            prepared[name] = value
        return prepared

    @staticmethod
    def _apply_fields(step: Step, fields: Dict[str, Any]) -> None:
        for name, value in fields.items():
            setattr(step, name, value)

    @staticmethod
    def _import_step(item: Union[Step, Dict[str, Any]]) -> Optional[Step]:
        """Step from imported data; None if it has no id.

        An unknown type is dropped so the classifier decides instead.
        """
        if isinstance(item, Step):
            return item
        if not isinstance(item, dict) or item.get("id") in (None, ""):
            logger.warning("Skipping imported step without an id: %r", item)
            return None
        try:
            return Step.from_dict(item)
        except ValueError as e:
            logger.warning("Clearing invalid type on step %s: %s", item["id"], e)
            return Step.from_dict({**item, "type": None})
