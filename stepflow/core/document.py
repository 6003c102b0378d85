"""Editing session: a step store plus its derived, user-editable state.

Classifications and dictionaries are seeded from the graph but then edited
independently of it, so they can drift from the live steps. Nothing here
re-derives them implicitly; ``auto_classify`` and ``regenerate_dictionaries``
are the explicit re-seed points.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import ClassificationConfig
from .classifier import Classifier, count_categories
from .dictionary import StepDictionaries, generate_default_dictionaries
from .graph import StepStore, StepType
from .state_machine import (
    CompilationResult,
    GraphIssue,
    StateMachineCompiler,
    StateMachineConfig,
    TransitionRow,
    validate_graph,
)

logger = logging.getLogger(__name__)


class FlowDocument:
    """A diagram being edited, with everything needed to export it.

    Parameters
    ----------
    store : StepStore, optional
        The graph. Default: a new empty store.
    classification_config : ClassificationConfig, optional
        Keyword sets for auto-classification
    classifications : Mapping[str, StepType], optional
        Saved step id -> category assignments
    dictionaries : StepDictionaries, optional
        Saved state/rule dictionaries
    state_machine_config : StateMachineConfig, optional
        Row defaults for compilation
    """

    def __init__(
        self,
        store: Optional[StepStore] = None,
        classification_config: Optional[ClassificationConfig] = None,
        classifications: Optional[Mapping[str, Union[StepType, str]]] = None,
        dictionaries: Optional[StepDictionaries] = None,
        state_machine_config: Optional[StateMachineConfig] = None,
    ):
        self.store = store if store is not None else StepStore()
        self.classification_config = classification_config or ClassificationConfig.default()
        self.classifications: Dict[str, StepType] = {
            step_id: StepType.coerce(category)
            for step_id, category in (classifications or {}).items()
        }
        self.dictionaries = dictionaries or StepDictionaries()
        self.compiler = StateMachineCompiler(state_machine_config)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def classifier(self) -> Classifier:
        return Classifier(self.classification_config)

    def set_classification_config(self, config: ClassificationConfig) -> None:
        """Replace the keyword sets. Saved classifications are kept."""
        self.classification_config = config

    def auto_classify(self) -> Dict[str, StepType]:
        """Discard saved classifications and re-derive them for every step."""
        self.classifications = self.classifier.classify_all(self.store.steps)
        logger.info("Auto-classified %d step(s)", len(self.classifications))
        return dict(self.classifications)

    def set_classification(self, step_id: str, category: Union[StepType, str]) -> bool:
        """Record a user-chosen category. False if step_id is unknown."""
        if step_id not in self.store:
            logger.warning("set_classification ignored: step not found: %s", step_id)
            return False
        self.classifications[step_id] = StepType.coerce(category)
        return True

    def effective_classifications(self) -> Dict[str, StepType]:
        """Saved categories, with steps added since classified on the fly."""
        return self.classifier.classify_all(self.store.steps, overrides=self.classifications)

    def classification_counts(self) -> Dict[str, int]:
        return count_categories(self.effective_classifications())

    # ------------------------------------------------------------------
    # Dictionaries
    # ------------------------------------------------------------------

    def regenerate_dictionaries(self) -> StepDictionaries:
        """Replace both dictionaries with identity mappings for the live graph."""
        self.dictionaries = generate_default_dictionaries(
            self.store.steps, self.effective_classifications()
        )
        return self.dictionaries

    def rename_step(
        self, step_id: str, name: str, migrate_dictionaries: bool = False
    ) -> bool:
        """Rename a step, optionally carrying dictionary entries along.

        Renaming changes the qualified name of the step and of all its
        descendants. Without migration their dictionary entries are left
        under the old keys and lookups fall back to sentinels.
        """
        return self._edit_naming(step_id, {"name": name}, migrate_dictionaries)

    def move_step(
        self, step_id: str, parent_id: Optional[str], migrate_dictionaries: bool = False
    ) -> bool:
        """Reparent a step, optionally carrying dictionary entries along.

        Raises UnknownParentError or ParentCycleError like
        ``StepStore.update_step``.
        """
        return self._edit_naming(step_id, {"parent_id": parent_id}, migrate_dictionaries)

    def _edit_naming(
        self, step_id: str, changes: Dict[str, Any], migrate_dictionaries: bool
    ) -> bool:
        tree = self.store.tree()
        affected = tree.descendants(step_id) if step_id in self.store else []
        before = {sid: tree.qualified_name(sid) for sid in affected}

        if not self.store.update_step(step_id, **changes):
            return False
        if not migrate_dictionaries:
            return True

        tree = self.store.tree()
        moved = 0
        for sid, old_name in before.items():
            new_name = tree.qualified_name(sid)
            if new_name != old_name and self.dictionaries.migrate_key(old_name, new_name):
                moved += 1
        logger.info("Migrated %d dictionary key(s)", moved)
        return True

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def compile(self) -> CompilationResult:
        return self.compiler.compile_store(
            self.store, self.effective_classifications(), self.dictionaries
        )

    def generate_rows(self) -> List[TransitionRow]:
        """The transition table for the current graph and dictionaries."""
        return self.compile().rows

    def validate(self, check_dictionaries: bool = True) -> List[GraphIssue]:
        return validate_graph(
            self.store.steps,
            self.store.connections,
            self.effective_classifications(),
            self.dictionaries if check_dictionaries else None,
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot in the diagram file layout (without ``version``)."""
        data = self.store.to_dict()
        data["classifications"] = {
            step_id: category.value for step_id, category in self.classifications.items()
        }
        data.update(self.dictionaries.to_dict())
        data["classificationRules"] = self.classification_config.to_dict()
        return data

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        state_machine_config: Optional[StateMachineConfig] = None,
        **store_kwargs: Any,
    ) -> "FlowDocument":
        """Rebuild a document from a snapshot.

        Only ``steps`` is required. Saved classifications for steps that did
        not survive loading, or with an unknown category, are dropped.
        """
        store = StepStore.from_dict(dict(data), **store_kwargs)
        rules = data.get("classificationRules")
        config = ClassificationConfig.from_dict(rules) if rules else None
        saved: Dict[str, StepType] = {}
        for step_id, category in (data.get("classifications") or {}).items():
            if step_id not in store:
                continue
            try:
                saved[step_id] = StepType.coerce(category)
            except ValueError:
                logger.warning(
                    "Dropping saved classification %r for step %s", category, step_id
                )
        return cls(
            store=store,
            classification_config=config,
            classifications=saved,
            dictionaries=StepDictionaries.from_dict(data),
            state_machine_config=state_machine_config,
        )
