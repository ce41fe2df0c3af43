"""
Category Model

Categories form a tree. DESIGN DECISION: relations are stored as id links
(parent_id / child_ids) rather than object references. The tree itself
(`budget_engine.categories.CategoryTree`) keeps the arena of categories and
is the only place that rewires links, so cycle checks can walk plain ids.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import Field

from budget_engine.models.base import DomainModel, utcnow

MAX_CATEGORY_NAME_LENGTH = 100


class Category(DomainModel):
    """
    A spending or income category.

    Equality is by id: two objects describe the same category when they
    carry the same identifier, whatever their other fields say.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_CATEGORY_NAME_LENGTH,
        description="Category name (unique among siblings)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    parent_id: Optional[UUID] = Field(
        default=None,
        description="Parent category, None for a root category"
    )
    child_ids: list[UUID] = Field(
        default_factory=list,
        description="Direct sub-categories, in insertion order"
    )
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return not self.child_ids

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Category):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.name
