"""Tree node model: one row per folder or file in a user's library."""

from sqlalchemy import BigInteger, Column, Index, String, DateTime, ForeignKey, and_
from sqlalchemy.sql import func
from ..database import Base
from ..tree.algorithms import TRASH_FOLDER_TITLE


class LibraryNode(Base):
    """A folder or file in a user's library tree.

    ``parent_id`` is positional only; a NULL parent means forest root.
    File rows reference exactly one problem; deleting the problem deletes the row.
    At most one root folder per user carries the trash title.
    """

    __tablename__ = "tree_nodes"

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    type = Column(String(10), nullable=False)  # 'folder' or 'file'
    parent_id = Column(String(50), ForeignKey("tree_nodes.id", ondelete="CASCADE"), nullable=True)
    problem_id = Column(String(50), ForeignKey("problems.id", ondelete="CASCADE"), nullable=True)
    sort_order = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    _root_trash = and_(parent_id.is_(None), type == "folder", title == TRASH_FOLDER_TITLE)

    __table_args__ = (
        Index("ix_tree_nodes_user_id", "user_id"),
        Index("ix_tree_nodes_parent_id", "parent_id"),
        Index("ix_tree_nodes_problem_id", "problem_id"),
        Index(
            "uq_tree_nodes_root_trash",
            "user_id",
            unique=True,
            sqlite_where=_root_trash,
            postgresql_where=_root_trash,
        ),
    )
    del _root_trash
