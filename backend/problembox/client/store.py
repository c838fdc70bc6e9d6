"""Client-side library store: optimistic mutations reconciled against the server.

``TreeStore`` owns one immutable ``LibrarySnapshot`` and is its only writer.
A mutation runs in two phases:

1. Local, synchronous: validate, compute the new snapshot with the pure tree
   algorithms, swap it in with one assignment.
2. Remote, as an asyncio task: call the server; on success merge any
   server-assigned fields, on failure throw local state away and reload the
   full snapshot from ``GET /api/bootstrap``.

Remote failures are logged and never escape the store. Remote calls are not
serialised, so they may finish out of order; the reload on failure is the only
correction.
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Set

from ..exceptions import RemoteError
from ..schemas.library import LibrarySnapshot
from ..schemas.problem import Problem
from ..tree.algorithms import find_node, locate, siblings_of
from ..tree.selection import SelectionState, VisibleProblemsView
from .commands import (
    Command,
    CreateFolder,
    DeleteProblems,
    HardDelete,
    MoveNodeToFolder,
    MoveProblemToFolder,
    RemoteLibrary,
    ReorderNodes,
    Restore,
    SoftDelete,
    ToggleFavorite,
)

logger = logging.getLogger(__name__)

Listener = Callable[[LibrarySnapshot], None]


class TreeStore:
    """One per session. Consumers read ``store.snapshot`` and never mutate it.

    Mutation methods return the ``asyncio.Task`` settling the remote phase, or
    None when the command was a local no-op (nothing was sent). They must be
    called from a running event loop.
    """

    def __init__(self, remote: RemoteLibrary):
        self.remote = remote
        self.selection = SelectionState()
        self._snapshot = LibrarySnapshot()
        self._pending: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []
        self._visible = VisibleProblemsView()

    @property
    def snapshot(self) -> LibrarySnapshot:
        return self._snapshot

    @property
    def pending(self) -> int:
        """Remote calls still in flight."""
        return len(self._pending)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, snapshot: LibrarySnapshot) -> None:
        if snapshot is self._snapshot:
            return
        self._snapshot = snapshot

        selected = self.selection.selected_folder_id
        if selected is not None and find_node(snapshot.tree, selected) is None:
            self.selection.select_folder(None)

        for listener in list(self._listeners):
            listener(snapshot)

    # --- Snapshot loading ---

    async def load(self) -> LibrarySnapshot:
        """Fetch the authoritative snapshot. Raises RemoteError on failure."""
        data = await self.remote.bootstrap()
        self._replace(LibrarySnapshot.from_bootstrap(data))
        logger.info(
            "Loaded library snapshot",
            extra={"problems": len(self._snapshot.problems), "roots": len(self._snapshot.tree)},
        )
        return self._snapshot

    async def refresh(self) -> bool:
        """Reload the snapshot, keeping current state if the reload fails too."""
        try:
            await self.load()
        except RemoteError as exc:
            logger.error(
                "Snapshot reload failed; keeping local state",
                extra={"error": exc.message, "status_code": exc.status_code},
            )
            return False
        return True

    # --- Command execution ---

    def dispatch(self, command: Command) -> Optional[asyncio.Task]:
        """Run the local phase now and schedule the remote phase.

        Raises ValidationError (before any change) for invalid input.
        """
        command.validate(self._snapshot)

        if command.optimistic:
            local = command.apply(self._snapshot)
            if local is self._snapshot:
                logger.debug("Command is a no-op", extra={"command": command.name})
                return None
            self._replace(local)
        else:
            local = self._snapshot

        task = asyncio.get_running_loop().create_task(self._settle(command, local))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def execute(self, command: Command) -> bool:
        """Dispatch and wait. True only if the server accepted the command."""
        task = self.dispatch(command)
        if task is None:
            return False
        return await task

    async def drain(self) -> None:
        """Wait for every in-flight remote call, including ones started meanwhile."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _settle(self, command: Command, local: LibrarySnapshot) -> bool:
        try:
            result = await command.send(self.remote, local)
        except RemoteError as exc:
            logger.warning(
                "Remote %s failed, reloading snapshot",
                command.name,
                extra={"command": command.name, "error": exc.message, "status_code": exc.status_code},
            )
            await self.refresh()
            return False
        except Exception:
            logger.exception("Unexpected error in %s, reloading snapshot", command.name)
            await self.refresh()
            return False

        self._replace(command.merge(self._snapshot, result))
        if command.needs_refresh(self._snapshot):
            await self.refresh()
        return True

    # --- Operations ---

    def create_folder(self, title: str, parent_id: Optional[str] = None) -> Optional[asyncio.Task]:
        """The folder appears once the server has assigned its id."""
        return self.dispatch(CreateFolder(title=title, parent_id=parent_id))

    def soft_delete(self, node_id: str) -> Optional[asyncio.Task]:
        return self.dispatch(SoftDelete(node_ids=(node_id,)))

    def soft_delete_batch(self, node_ids: Iterable[str]) -> Optional[asyncio.Task]:
        return self.dispatch(SoftDelete(node_ids=tuple(dict.fromkeys(node_ids)), batch=True))

    def restore(self, node_id: str) -> Optional[asyncio.Task]:
        return self.dispatch(Restore(node_id=node_id))

    def hard_delete(self, node_id: str) -> Optional[asyncio.Task]:
        return self.dispatch(HardDelete(node_id=node_id))

    def move_problem_to_folder(
        self, problem_id: str, target_folder_id: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        return self.dispatch(MoveProblemToFolder(problem_id=problem_id, target_folder_id=target_folder_id))

    def move_node_to_folder(
        self, node_id: str, target_folder_id: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        return self.dispatch(MoveNodeToFolder(node_id=node_id, target_folder_id=target_folder_id))

    def reorder_nodes_in_parent(
        self, parent_id: Optional[str], ordered_ids: Iterable[str]
    ) -> Optional[asyncio.Task]:
        return self.dispatch(ReorderNodes(parent_id=parent_id, ordered_ids=tuple(ordered_ids)))

    def reorder_within_parent(self, from_id: str, to_id: str) -> Optional[asyncio.Task]:
        """Move *from_id* to *to_id*'s position. Both must share a parent."""
        tree = self._snapshot.tree
        source = locate(tree, from_id)
        target = locate(tree, to_id)
        if source is None or target is None or from_id == to_id or source[0] != target[0]:
            return None

        ids = [node.id for node in siblings_of(tree, source[0])]
        ids.pop(source[1])
        ids.insert(target[1], from_id)
        return self.reorder_nodes_in_parent(source[0], ids)

    def delete_problem(self, problem_id: str) -> Optional[asyncio.Task]:
        return self.dispatch(DeleteProblems(problem_ids=(problem_id,)))

    def delete_problems_batch(self, problem_ids: Iterable[str]) -> Optional[asyncio.Task]:
        return self.dispatch(DeleteProblems(problem_ids=tuple(dict.fromkeys(problem_ids)), batch=True))

    def toggle_favorite(self, problem_id: str) -> Optional[asyncio.Task]:
        return self.dispatch(ToggleFavorite(problem_id=problem_id))

    # --- Derived view ---

    def visible_problems(self) -> List[Problem]:
        """Problems for the current selection; memoized per snapshot."""
        return self._visible(
            self._snapshot.tree,
            self._snapshot.problems,
            self.selection.selected_folder_id,
            self.selection.difficulty_filter,
        )
