"""Library mutations as command values.

Each command has a local phase and a remote phase:

    validate(snapshot)        raise ValidationError before anything changes
    apply(snapshot)           pure; returns the optimistic snapshot, or the
                              same object when the command is a no-op
    send(remote, snapshot)    the remote call; *snapshot* is what apply produced
    merge(snapshot, result)   fold server-authoritative fields into the
                              current snapshot after success

``TreeStore`` runs them; commands never touch the store themselves.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

from ..exceptions import ValidationError
from ..schemas.library import BootstrapResponse, HardDeleteResponse, LibrarySnapshot
from ..schemas.tree import FILE, FOLDER, Forest, TreeNode
from ..tree.algorithms import (
    TRASH_FOLDER_TITLE,
    collect_descendant_problem_ids,
    find_node,
    find_trash_folder,
    insert_node,
    is_descendant,
    iter_nodes,
    move_node,
    prune_by_problem_ids,
    remove_nodes,
    reorder_siblings,
    siblings_of,
)

# Stand-in id for a trash folder the server has not created yet.
PENDING_TRASH_ID = "pending-trash"


def _has_trash_title(node: Optional[TreeNode]) -> bool:
    return node is not None and node.type == FOLDER and node.title == TRASH_FOLDER_TITLE


class RemoteLibrary(Protocol):
    """What the store needs from the backend. ``ProblemBoxClient`` implements it."""

    async def bootstrap(self) -> BootstrapResponse: ...
    async def create_folder(self, title: str, parent_id: Optional[str] = None) -> TreeNode: ...
    async def soft_delete(self, node_id: str) -> List[str]: ...
    async def soft_delete_batch(self, node_ids: List[str]) -> List[str]: ...
    async def restore(self, node_id: str) -> None: ...
    async def hard_delete(self, node_id: str) -> HardDeleteResponse: ...
    async def move_problem(self, problem_id: str, target_folder_id: Optional[str] = None) -> None: ...
    async def move_node(self, node_id: str, target_folder_id: Optional[str] = None) -> None: ...
    async def reorder(self, ordered_ids: List[str]) -> None: ...
    async def delete_problem(self, problem_id: str) -> None: ...
    async def delete_problems_batch(self, problem_ids: List[str]) -> None: ...
    async def toggle_favorite(self, problem_id: str) -> List[str]: ...


def _with_tree(snapshot: LibrarySnapshot, tree: Forest) -> LibrarySnapshot:
    if tree is snapshot.tree:
        return snapshot
    return snapshot.model_copy(update={"tree": tuple(tree)})


def _without_problems(snapshot: LibrarySnapshot, problem_ids) -> LibrarySnapshot:
    """Drop problems, their file nodes and their favourites."""
    doomed = set(problem_ids)
    if not doomed:
        return snapshot
    tree = prune_by_problem_ids(snapshot.tree, doomed)
    problems = {pid: p for pid, p in snapshot.problems.items() if pid not in doomed}
    favorites = tuple(pid for pid in snapshot.favorites if pid not in doomed)
    if (
        tree is snapshot.tree
        and len(problems) == len(snapshot.problems)
        and len(favorites) == len(snapshot.favorites)
    ):
        return snapshot
    return snapshot.model_copy(
        update={"tree": tuple(tree), "problems": problems, "favorites": favorites}
    )


class Command:
    """Base command: no validation, no local change, nothing to merge."""

    # False for commands that wait for the server before touching local state.
    optimistic = True

    def validate(self, snapshot: LibrarySnapshot) -> None:
        pass

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        return snapshot

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> Any:
        raise NotImplementedError

    def merge(self, snapshot: LibrarySnapshot, result: Any) -> LibrarySnapshot:
        return snapshot

    def needs_refresh(self, snapshot: LibrarySnapshot) -> bool:
        """Whether a successful call still leaves local state incomplete."""
        return False

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class CreateFolder(Command):
    """Confirm-then-insert: the node appears only once the server has an id for it."""

    title: str
    parent_id: Optional[str] = None

    optimistic = False

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Folder title cannot be empty", field="title")
        if self.parent_id is not None:
            if self.parent_id == PENDING_TRASH_ID:
                raise ValidationError("The trash folder is not created yet", field="parent_id")
            parent = find_node(snapshot.tree, self.parent_id)
            if parent is None or parent.type != FOLDER:
                raise ValidationError(f"Parent folder not found: {self.parent_id}", field="parent_id")
        elif self.title.strip() == TRASH_FOLDER_TITLE:
            raise ValidationError(
                f"'{TRASH_FOLDER_TITLE}' is reserved for the trash folder at root", field="title"
            )

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> TreeNode:
        return await remote.create_folder(self.title.strip(), self.parent_id)

    def merge(self, snapshot: LibrarySnapshot, result: TreeNode) -> LibrarySnapshot:
        if find_node(snapshot.tree, result.id) is not None:
            return snapshot
        return _with_tree(snapshot, insert_node(snapshot.tree, result, result.parent_id))


@dataclass(frozen=True)
class SoftDelete(Command):
    """Move nodes under the trash folder. *batch* picks the batch endpoint."""

    node_ids: Tuple[str, ...]
    batch: bool = False

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.node_ids or not all(self.node_ids):
            raise ValidationError("No nodes to delete", field="node_ids")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        tree = snapshot.tree
        trash = find_trash_folder(tree)
        if trash is None:
            trash = TreeNode(id=PENDING_TRASH_ID, title=TRASH_FOLDER_TITLE, type=FOLDER)
            tree = tree + (trash,)
        with_trash = tree

        for node_id in self.node_ids:
            if node_id != trash.id:
                tree = move_node(tree, node_id, trash.id)

        if tree is with_trash:
            return snapshot
        return _with_tree(snapshot, tree)

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> List[str]:
        if self.batch:
            return await remote.soft_delete_batch(list(self.node_ids))
        return await remote.soft_delete(self.node_ids[0])

    def needs_refresh(self, snapshot: LibrarySnapshot) -> bool:
        # The server created the real trash folder; only a snapshot knows its id.
        return find_node(snapshot.tree, PENDING_TRASH_ID) is not None


@dataclass(frozen=True)
class Restore(Command):
    node_id: str

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.node_id:
            raise ValidationError("Node id is required", field="node_id")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        node = find_node(snapshot.tree, self.node_id)
        if _has_trash_title(node) and node.parent_id is not None:
            return snapshot
        return _with_tree(snapshot, move_node(snapshot.tree, self.node_id, None))

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> None:
        await remote.restore(self.node_id)


@dataclass(frozen=True)
class HardDelete(Command):
    """Delete a subtree plus every problem filed in it, everywhere it appears."""

    node_id: str

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.node_id:
            raise ValidationError("Node id is required", field="node_id")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        node = find_node(snapshot.tree, self.node_id)
        if node is None:
            return snapshot
        problem_ids = collect_descendant_problem_ids(node)
        pruned = _with_tree(snapshot, remove_nodes(snapshot.tree, [self.node_id]))
        return _without_problems(pruned, problem_ids)

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> HardDeleteResponse:
        return await remote.hard_delete(self.node_id)

    def merge(self, snapshot: LibrarySnapshot, result: HardDeleteResponse) -> LibrarySnapshot:
        pruned = _with_tree(snapshot, remove_nodes(snapshot.tree, result.deleted_ids))
        return _without_problems(pruned, result.deleted_problem_ids)


@dataclass(frozen=True)
class MoveProblemToFolder(Command):
    """Move the file node(s) of a problem; root when *target_folder_id* is None."""

    problem_id: str
    target_folder_id: Optional[str] = None

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.problem_id:
            raise ValidationError("Problem id is required", field="problem_id")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        if self.target_folder_id == PENDING_TRASH_ID:
            return snapshot
        node_ids = [
            node.id
            for node in iter_nodes(snapshot.tree)
            if node.type == FILE and node.problem_id == self.problem_id
        ]
        tree = snapshot.tree
        for node_id in node_ids:
            tree = move_node(tree, node_id, self.target_folder_id)
        return _with_tree(snapshot, tree)

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> None:
        await remote.move_problem(self.problem_id, self.target_folder_id)


@dataclass(frozen=True)
class MoveNodeToFolder(Command):
    """Reparent a node.

    No-ops: self-moves, moves into its own subtree, moving the trash folder,
    targeting the unconfirmed placeholder trash, and moving a folder titled
    like the trash to root.
    """

    node_id: str
    target_folder_id: Optional[str] = None

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.node_id:
            raise ValidationError("Node id is required", field="node_id")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        trash = find_trash_folder(snapshot.tree)
        if trash is not None and trash.id == self.node_id:
            return snapshot
        target = self.target_folder_id
        if target == PENDING_TRASH_ID:
            return snapshot
        if target is None and _has_trash_title(find_node(snapshot.tree, self.node_id)):
            return snapshot
        if target is not None:
            if target == self.node_id or is_descendant(snapshot.tree, self.node_id, target):
                return snapshot
        return _with_tree(snapshot, move_node(snapshot.tree, self.node_id, target))

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> None:
        await remote.move_node(self.node_id, self.target_folder_id)


@dataclass(frozen=True)
class ReorderNodes(Command):
    """Put *ordered_ids* first among *parent_id*'s children (roots when None).

    The server receives the complete sibling order so its sort keys match.
    """

    parent_id: Optional[str]
    ordered_ids: Tuple[str, ...]

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.ordered_ids:
            raise ValidationError("Nothing to reorder", field="ordered_ids")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        return _with_tree(snapshot, reorder_siblings(snapshot.tree, self.parent_id, self.ordered_ids))

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> None:
        siblings = siblings_of(snapshot.tree, self.parent_id)
        await remote.reorder([node.id for node in siblings])


@dataclass(frozen=True)
class DeleteProblems(Command):
    """Delete problems with their file nodes and favourites."""

    problem_ids: Tuple[str, ...]
    batch: bool = False

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.problem_ids or not all(self.problem_ids):
            raise ValidationError("No problems to delete", field="problem_ids")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        return _without_problems(snapshot, self.problem_ids)

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> None:
        if self.batch:
            await remote.delete_problems_batch(list(self.problem_ids))
        else:
            await remote.delete_problem(self.problem_ids[0])


@dataclass(frozen=True)
class ToggleFavorite(Command):
    problem_id: str

    def validate(self, snapshot: LibrarySnapshot) -> None:
        if not self.problem_id:
            raise ValidationError("Problem id is required", field="problem_id")

    def apply(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        if self.problem_id not in snapshot.problems:
            return snapshot
        if self.problem_id in snapshot.favorites:
            favorites = tuple(pid for pid in snapshot.favorites if pid != self.problem_id)
        else:
            favorites = snapshot.favorites + (self.problem_id,)
        return snapshot.model_copy(update={"favorites": favorites})

    async def send(self, remote: RemoteLibrary, snapshot: LibrarySnapshot) -> List[str]:
        return await remote.toggle_favorite(self.problem_id)

    def merge(self, snapshot: LibrarySnapshot, result: List[str]) -> LibrarySnapshot:
        favorites = tuple(pid for pid in result if pid in snapshot.problems)
        if favorites == snapshot.favorites:
            return snapshot
        return snapshot.model_copy(update={"favorites": favorites})
