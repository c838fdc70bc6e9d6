"""Client side of the library: API client, command values and the tree store."""

from .api_client import ProblemBoxClient
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
from .config import ClientSettings
from .drag_drop import DropAction, perform_drop, resolve_drop
from .store import TreeStore

__all__ = [
    "ClientSettings",
    "Command",
    "CreateFolder",
    "DeleteProblems",
    "DropAction",
    "HardDelete",
    "MoveNodeToFolder",
    "MoveProblemToFolder",
    "ProblemBoxClient",
    "RemoteLibrary",
    "ReorderNodes",
    "Restore",
    "SoftDelete",
    "ToggleFavorite",
    "TreeStore",
    "perform_drop",
    "resolve_drop",
]
