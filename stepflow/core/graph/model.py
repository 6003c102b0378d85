"""Step and connection records for the flow graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class StepType(Enum):
    """Role of a step in the compiled state machine."""

    STATE = "state"  # Appears as a source/destination node
    RULE = "rule"  # Contributes a name to the rule list
    BEHAVIOR = "behavior"  # Traversed, contributes nothing

    @classmethod
    def coerce(cls, value: Union["StepType", str]) -> "StepType":
        """Accept an enum member or its string value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [m.value for m in cls]
            raise ValueError(f"Unknown step type: {value!r}. Expected one of {valid}")


class ConnectionType(Enum):
    """Outcome label carried by a connection."""

    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def coerce(cls, value: Union["ConnectionType", str]) -> "ConnectionType":
        """Accept an enum member or its string value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [m.value for m in cls]
            raise ValueError(
                f"Unknown connection type: {value!r}. Expected one of {valid}"
            )


# Step fields that may be changed through StepStore.update_step
MUTABLE_STEP_FIELDS = {
    "name",
    "alias",
    "description",
    "type",
    "parent_id",
    "assumptions",
    "questions",
    "image_urls",
    "position",
}


@dataclass
class Step:
    """A node in the flow graph.

    Attributes
    ----------
    id : str
        Opaque, unique and immutable identifier
    name : str
        Display name (the last segment of the qualified name)
    alias : str, optional
        Stable short identifier
    description : str
        Free text
    type : StepType, optional
        Explicit role. None means the classifier decides.
    parent_id : str, optional
        Parent step id; parents form a forest
    assumptions, questions, image_urls, position
        Presentation-only fields, carried through untouched
    """

    id: str
    name: str
    alias: Optional[str] = None
    description: str = ""
    type: Optional[StepType] = None
    parent_id: Optional[str] = None
    assumptions: List[str] = field(default_factory=list)
    questions: List[str] = field(default_factory=list)
    image_urls: List[str] = field(default_factory=list)
    position: Dict[str, float] = field(default_factory=lambda: {"x": 0, "y": 0})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase snapshot format."""
        return {
            "id": self.id,
            "name": self.name,
            "alias": self.alias,
            "description": self.description,
            "type": self.type.value if self.type is not None else None,
            "parentId": self.parent_id,
            "assumptions": list(self.assumptions),
            "questions": list(self.questions),
            "imageUrls": list(self.image_urls),
            "position": dict(self.position),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        """Build a step from a snapshot dict (camelCase or snake_case keys)."""
        step_type = data.get("type")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            alias=data.get("alias") or None,
            description=data.get("description") or "",
            type=StepType.coerce(step_type) if step_type else None,
            parent_id=data.get("parentId", data.get("parent_id")) or None,
            assumptions=list(data.get("assumptions") or []),
            questions=list(data.get("questions") or []),
            image_urls=list(data.get("imageUrls", data.get("image_urls")) or []),
            position=dict(data.get("position") or {"x": 0, "y": 0}),
        )


@dataclass(frozen=True)
class Connection:
    """A typed directed edge between two steps.

    Identity is the ``(from_step_id, to_step_id, type)`` triple; ``id`` is a
    handle for UI collaborators and takes no part in equality.
    """

    from_step_id: str
    to_step_id: str
    type: ConnectionType
    id: str = field(default="", compare=False)

    @property
    def key(self) -> Tuple[str, str, ConnectionType]:
        """The uniqueness triple."""
        return (self.from_step_id, self.to_step_id, self.type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase snapshot format."""
        return {
            "id": self.id,
            "fromStepId": self.from_step_id,
            "toStepId": self.to_step_id,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connection":
        """Build a connection from a snapshot dict."""
        return cls(
            from_step_id=str(data.get("fromStepId", data.get("from_step_id"))),
            to_step_id=str(data.get("toStepId", data.get("to_step_id"))),
            type=ConnectionType.coerce(data.get("type", "success")),
            id=str(data.get("id") or ""),
        )
