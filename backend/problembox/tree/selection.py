"""Derived problem-list view: selected folder + difficulty filter."""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Set, Tuple

from ..exceptions import ValidationError
from ..schemas.problem import Problem
from ..schemas.tree import TreeNode
from .algorithms import collect_descendant_problem_ids, find_node

DIFFICULTY_FILTERS = ("all", "easy", "medium", "hard")


def compute_visible_problems(
    forest: Sequence[TreeNode],
    problems: Mapping[str, Problem],
    selected_folder_id: Optional[str],
    difficulty_filter: str = "all",
) -> List[Problem]:
    """Problems shown in the list pane.

    No folder selected means every problem. Otherwise the problems filed
    anywhere under the selected folder, in tree order; ids with no matching
    problem are skipped, and an unknown folder shows nothing.
    """
    if selected_folder_id is None:
        candidates = list(problems.values())
    else:
        folder = find_node(forest, selected_folder_id)
        candidates = [
            problems[problem_id]
            for problem_id in collect_descendant_problem_ids(folder)
            if problem_id in problems
        ]

    if difficulty_filter != "all":
        candidates = [p for p in candidates if p.difficulty == difficulty_filter]
    return candidates


@dataclass
class SelectionState:
    """View state of the library pane. Never persisted."""

    selected_folder_id: Optional[str] = None
    difficulty_filter: str = "all"
    expanded_node_ids: Set[str] = field(default_factory=set)

    def select_folder(self, folder_id: Optional[str]) -> None:
        self.selected_folder_id = folder_id

    def set_difficulty_filter(self, difficulty: str) -> None:
        if difficulty not in DIFFICULTY_FILTERS:
            raise ValidationError(
                f"Unknown difficulty filter: {difficulty}", field="difficulty_filter"
            )
        self.difficulty_filter = difficulty

    def toggle_expanded(self, node_id: str) -> bool:
        """Flip a folder's expanded flag; returns the new state."""
        if node_id in self.expanded_node_ids:
            self.expanded_node_ids.discard(node_id)
            return False
        self.expanded_node_ids.add(node_id)
        return True


class VisibleProblemsView:
    """Memoized ``compute_visible_problems``.

    Snapshots are immutable and replaced wholesale, so the forest and problem
    map are compared by identity; the two selection values by equality.
    """

    def __init__(self) -> None:
        self._key: Optional[Tuple[object, object, Optional[str], str]] = None
        self._result: List[Problem] = []

    def __call__(
        self,
        forest: Sequence[TreeNode],
        problems: Mapping[str, Problem],
        selected_folder_id: Optional[str],
        difficulty_filter: str = "all",
    ) -> List[Problem]:
        key = (forest, problems, selected_folder_id, difficulty_filter)
        if self._key is not None and self._matches(key):
            return list(self._result)
        self._result = compute_visible_problems(forest, problems, selected_folder_id, difficulty_filter)
        self._key = key
        return list(self._result)

    def _matches(self, key: Tuple[object, object, Optional[str], str]) -> bool:
        forest, problems, selected, difficulty = self._key
        return (
            key[0] is forest
            and key[1] is problems
            and key[2] == selected
            and key[3] == difficulty
        )
