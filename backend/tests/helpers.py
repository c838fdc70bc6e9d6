"""Builders for forests, problems and snapshots used across the tests."""

from problembox.schemas.library import LibrarySnapshot
from problembox.schemas.problem import Problem
from problembox.schemas.tree import TreeNode


def folder(node_id, *children, title=None, parent_id=None):
    """Folder node; children get their parent_id set to this folder."""
    return TreeNode(
        id=node_id,
        title=title or node_id,
        type="folder",
        parent_id=parent_id,
        children=tuple(c.model_copy(update={"parent_id": node_id}) for c in children),
    )


def file(node_id, problem_id, title=None, parent_id=None):
    return TreeNode(
        id=node_id,
        title=title or node_id,
        type="file",
        parent_id=parent_id,
        problem_id=problem_id,
    )


def problem(problem_id, difficulty="medium", title=None):
    return Problem(id=problem_id, title=title or problem_id, difficulty=difficulty)


def snapshot(tree, problems=(), favorites=()):
    return LibrarySnapshot(
        tree=tuple(tree),
        problems={p.id: p for p in problems},
        favorites=tuple(favorites),
    )


def shape(forest):
    """Nested (id, parent_id, children) tuples: structure without titles or sort keys."""
    return tuple((n.id, n.parent_id, shape(n.children)) for n in forest)


def make_problem(title="Quadratic roots", difficulty="medium", parent_folder_id=None, **overrides):
    """Factory for problem import payloads (camelCase, as sent on the wire)."""
    payload = {
        "title": title,
        "subject": "math",
        "difficulty": difficulty,
        "description": "Solve x^2 - 5x + 6 = 0.",
        "tags": ["algebra"],
        "parentFolderId": parent_folder_id,
    }
    payload.update(overrides)
    return payload
