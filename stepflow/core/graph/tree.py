"""Parent hierarchy over steps: qualified names and ancestor checks."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from .model import Step

QUALIFIED_NAME_SEPARATOR = " > "


class StepTree:
    """Index over a set of steps keyed by id, following ``parent_id`` links.

    Parent pointers form a forest by convention only, so every upward walk
    carries a visited set and stops at the first repeated step.
    """

    def __init__(self, steps: Iterable[Step]):
        self.steps: List[Step] = list(steps)
        self.by_id: Dict[str, Step] = {step.id: step for step in self.steps}
        self.children: Dict[str, List[str]] = {}
        for step in self.steps:
            if step.parent_id is not None:
                self.children.setdefault(step.parent_id, []).append(step.id)
        self._qualified: Dict[str, str] = {}

    def get(self, step_id: str) -> Optional[Step]:
        return self.by_id.get(step_id)

    def ancestors(self, step_id: str) -> List[str]:
        """Return ancestor ids, nearest first.

        Stops at a missing parent or at the first step already seen.
        """
        result: List[str] = []
        step = self.by_id.get(step_id)
        if step is None:
            return result
        visited: Set[str] = {step_id}
        parent_id = step.parent_id
        while parent_id is not None and parent_id not in visited:
            parent = self.by_id.get(parent_id)
            if parent is None:
                break
            visited.add(parent_id)
            result.append(parent_id)
            parent_id = parent.parent_id
        return result

    def qualified_name(self, step_id: str) -> str:
        """Return the step name prefixed by its ancestor chain.

        Example: "Checkout > Payment > is card valid?". Unknown ids yield "".
        """
        if step_id in self._qualified:
            return self._qualified[step_id]
        step = self.by_id.get(step_id)
        if step is None:
            return ""
        names = [self.by_id[a].name for a in reversed(self.ancestors(step_id))]
        names.append(step.name)
        qualified = QUALIFIED_NAME_SEPARATOR.join(names)
        self._qualified[step_id] = qualified
        return qualified

    def would_create_cycle(self, step_id: str, new_parent_id: Optional[str]) -> bool:
        """True if making new_parent_id the parent of step_id closes a loop."""
        if new_parent_id is None:
            return False
        if new_parent_id == step_id:
            return True
        return step_id in self.ancestors(new_parent_id)

    def find_parent_cycles(self) -> List[List[str]]:
        """Return each ancestor cycle once, as a list of step ids."""
        cycles: List[List[str]] = []
        seen: Set[str] = set()
        for step in self.steps:
            path: List[str] = []
            on_path: Dict[str, int] = {}
            current: Optional[str] = step.id
            while current is not None and current in self.by_id and current not in seen:
                if current in on_path:
                    cycles.append(path[on_path[current]:])
                    break
                on_path[current] = len(path)
                path.append(current)
                current = self.by_id[current].parent_id
            seen.update(path)
        return cycles

    def descendants(self, step_id: str, include_self: bool = True) -> List[str]:
        """Return descendant ids in depth-first store order."""
        result: List[str] = []
        visited: Set[str] = set()
        stack = [step_id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            if current != step_id or include_self:
                result.append(current)
            stack.extend(reversed(self.children.get(current, [])))
        return result

    def roots(self) -> List[Step]:
        """Steps without a (resolvable) parent."""
        return [
            step
            for step in self.steps
            if step.parent_id is None or step.parent_id not in self.by_id
        ]
