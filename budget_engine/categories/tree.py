"""
Category Tree

DESIGN DECISION: Categories live in an arena keyed by id. Parent/child
relations are id links, and every rewiring goes through this class, so
the acyclicity invariant is enforced in exactly one place.

INVARIANTS:
- The parent chain of every category is acyclic
- A category is never its own ancestor
- Sibling names are unique (case-insensitive)
- A category with children cannot be removed
"""

from typing import Iterable, Iterator, Optional
from uuid import UUID

from budget_engine.errors import (
    CategoryHasChildrenError,
    CycleError,
    DuplicateCategoryNameError,
)
from budget_engine.models.category import Category
from budget_engine.services.storage.interface import NotFoundError


class CategoryTree:
    """
    In-memory hierarchy of categories.

    The tree holds the category objects it is given and mutates their
    `parent_id` / `child_ids` links in place. Persisting the changed
    categories is the caller's job.
    """

    def __init__(self, categories: Optional[Iterable[Category]] = None):
        self._nodes: dict[UUID, Category] = {}
        for category in categories or ():
            self._nodes[category.id] = category

    @classmethod
    def from_categories(cls, categories: Iterable[Category]) -> "CategoryTree":
        """Build a tree from already-linked categories (e.g. loaded from storage)."""
        return cls(categories)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def __contains__(self, category: object) -> bool:
        return isinstance(category, Category) and category.id in self._nodes

    def __iter__(self) -> Iterator[Category]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, category_id: UUID) -> Category:
        try:
            return self._nodes[category_id]
        except KeyError:
            raise NotFoundError(f"Category not found: {category_id}") from None

    def parent_of(self, category: Category) -> Optional[Category]:
        if category.parent_id is None:
            return None
        return self.get(category.parent_id)

    def children_of(self, category: Category) -> list[Category]:
        return [self.get(child_id) for child_id in category.child_ids]

    def roots(self) -> list[Category]:
        return [c for c in self._nodes.values() if c.parent_id is None]

    def active(self) -> list[Category]:
        return [c for c in self._nodes.values() if c.active]

    def siblings_of(self, category: Category) -> list[Category]:
        """Other categories sharing the same parent (roots are siblings of each other)."""
        parent = self.parent_of(category)
        pool = self.children_of(parent) if parent else self.roots()
        return [c for c in pool if c.id != category.id]

    # -------------------------------------------------------------------------
    # Structural queries
    # -------------------------------------------------------------------------

    def is_descendant_of(self, category: Category, ancestor: Category) -> bool:
        """Walk the parent chain of `category` looking for `ancestor`. O(depth)."""
        current_id = category.parent_id
        while current_id is not None:
            if current_id == ancestor.id:
                return True
            current_id = self.get(current_id).parent_id
        return False

    def path(self, category: Category) -> list[Category]:
        """Categories from the root down to `category` (inclusive)."""
        path = [category]
        current = self.parent_of(category)
        while current is not None:
            path.append(current)
            current = self.parent_of(current)
        path.reverse()
        return path

    def label(self, category: Category, separator: str = " > ") -> str:
        """Full path name, e.g. 'Home > Utilities > Electricity'."""
        return separator.join(c.name for c in self.path(category))

    def all_descendants(self, category: Category) -> list[Category]:
        """Every category below `category`, depth-first, each listed once."""
        descendants: list[Category] = []
        for child in self.children_of(category):
            descendants.append(child)
            descendants.extend(self.all_descendants(child))
        return descendants

    def can_delete(self, category: Category) -> bool:
        """
        A category can be deleted only when it has no children.

        Whether movements still reference it is checked by the caller.
        """
        return not category.child_ids

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, category: Category, parent: Optional[Category] = None) -> Category:
        """Register a new category, optionally directly under `parent`."""
        if parent is not None:
            self.add_child(parent, category)
            return category

        self._check_unique_name(category.name, None, exclude=category)
        category.parent_id = None
        self._nodes[category.id] = category
        return category

    def add_child(self, parent: Category, child: Category) -> None:
        """
        Attach `child` under `parent`, detaching it from any previous parent.

        Raises:
            CycleError: If child is parent, or child is an ancestor of parent
            DuplicateCategoryNameError: If parent already has a child with that name
        """
        if child == parent:
            raise CycleError(f"Category '{child.name}' cannot be its own child")
        self._require(parent)
        if self.is_descendant_of(parent, child):
            raise CycleError(
                f"Moving '{child.name}' under '{parent.name}' would create a cycle"
            )
        if child.parent_id == parent.id:
            return
        self._check_unique_name(child.name, parent, exclude=child)

        self._nodes[child.id] = child
        self._detach(child)
        child.parent_id = parent.id
        parent.child_ids.append(child.id)

    def remove_child(self, parent: Category, child: Category) -> None:
        """Detach `child` from `parent`; the child becomes a root."""
        if child.id in parent.child_ids:
            self._check_unique_name(child.name, None, exclude=child)
            parent.child_ids.remove(child.id)
            child.parent_id = None

    def reparent(self, category: Category, new_parent: Optional[Category]) -> None:
        """Move `category` under `new_parent`, or to the root level when None."""
        if new_parent is None:
            parent = self.parent_of(category)
            if parent is not None:
                self.remove_child(parent, category)
            return
        self.add_child(new_parent, category)

    def rename(self, category: Category, name: str) -> None:
        """Rename, keeping sibling names unique. A case-only change is always allowed."""
        if category.name.casefold() != name.strip().casefold():
            self._check_unique_name(name, self.parent_of(category), exclude=category)
        category.name = name

    def set_active(self, category: Category, active: bool) -> None:
        category.active = active

    def remove(self, category: Category) -> Category:
        """
        Remove a leaf category from the tree.

        Raises:
            CategoryHasChildrenError: If the category still has children
        """
        self._require(category)
        if not self.can_delete(category):
            raise CategoryHasChildrenError(
                f"Category '{category.name}' still has "
                f"{len(category.child_ids)} sub-categories"
            )
        parent = self.parent_of(category)
        if parent is not None:
            parent.child_ids.remove(category.id)
        return self._nodes.pop(category.id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require(self, category: Category) -> None:
        if category.id not in self._nodes:
            raise NotFoundError(f"Category not in tree: {category.name}")

    def _detach(self, category: Category) -> None:
        if category.parent_id is None:
            return
        old_parent = self._nodes.get(category.parent_id)
        if old_parent is not None and category.id in old_parent.child_ids:
            old_parent.child_ids.remove(category.id)
        category.parent_id = None

    def _check_unique_name(
        self,
        name: str,
        parent: Optional[Category],
        exclude: Category,
    ) -> None:
        pool = self.children_of(parent) if parent else self.roots()
        wanted = name.strip().casefold()
        for sibling in pool:
            if sibling.id != exclude.id and sibling.name.casefold() == wanted:
                where = f"under '{parent.name}'" if parent else "among root categories"
                raise DuplicateCategoryNameError(
                    f"Category '{name}' already exists {where}"
                )
