"""Tests for the category hierarchy."""

import pytest

from budget_engine.categories import CategoryTree
from budget_engine.errors import (
    CategoryHasChildrenError,
    CycleError,
    DuplicateCategoryNameError,
)
from budget_engine.models import Category
from budget_engine.services.storage import NotFoundError


@pytest.fixture
def tree() -> CategoryTree:
    return CategoryTree()


@pytest.fixture
def home_tree(tree):
    """Home > Utilities > Electricity, plus a Food root."""
    home = tree.add(Category(name="Home"))
    utilities = tree.add(Category(name="Utilities"), home)
    electricity = tree.add(Category(name="Electricity"), utilities)
    food = tree.add(Category(name="Food"))
    return tree, home, utilities, electricity, food


class TestCycleSafety:
    """Tests that the hierarchy can never become cyclic."""

    def test_add_child_to_itself(self, tree):
        """Test that a category cannot be its own child."""
        a = tree.add(Category(name="A"))
        with pytest.raises(CycleError):
            tree.add_child(a, a)

    def test_two_node_cycle(self, tree):
        """Test that add_child(A, B) then add_child(B, A) is rejected."""
        a = tree.add(Category(name="A"))
        b = tree.add(Category(name="B"))
        tree.add_child(a, b)
        with pytest.raises(CycleError):
            tree.add_child(b, a)
        assert a.parent_id is None
        assert b.parent_id == a.id

    def test_deep_cycle(self, home_tree):
        """Test that a category cannot move under its own grandchild."""
        tree, home, _, electricity, _ = home_tree
        with pytest.raises(CycleError):
            tree.reparent(home, electricity)
        assert home.is_root


class TestStructure:
    """Tests for linking and structural queries."""

    def test_add_child_links_both_sides(self, home_tree):
        tree, home, utilities, _, _ = home_tree
        assert utilities.parent_id == home.id
        assert home.child_ids == [utilities.id]
        assert tree.children_of(home) == [utilities]

    def test_roots(self, home_tree):
        tree, home, _, _, food = home_tree
        assert tree.roots() == [home, food]

    def test_is_descendant_of(self, home_tree):
        tree, home, utilities, electricity, food = home_tree
        assert tree.is_descendant_of(electricity, home)
        assert tree.is_descendant_of(utilities, home)
        assert not tree.is_descendant_of(home, electricity)
        assert not tree.is_descendant_of(electricity, food)
        assert not tree.is_descendant_of(home, home)

    def test_path_and_label(self, home_tree):
        tree, home, utilities, electricity, _ = home_tree
        assert tree.path(electricity) == [home, utilities, electricity]
        assert tree.label(electricity) == "Home > Utilities > Electricity"
        assert tree.label(home) == "Home"

    def test_all_descendants(self, home_tree):
        tree, home, utilities, electricity, _ = home_tree
        water = tree.add(Category(name="Water"), utilities)
        assert tree.all_descendants(home) == [utilities, electricity, water]
        assert tree.all_descendants(electricity) == []

    def test_reparent_moves_between_parents(self, home_tree):
        """Test that moving detaches from the old parent."""
        tree, home, utilities, electricity, food = home_tree
        tree.reparent(utilities, food)
        assert utilities.parent_id == food.id
        assert home.child_ids == []
        assert food.child_ids == [utilities.id]
        assert tree.label(electricity) == "Food > Utilities > Electricity"

    def test_reparent_to_root(self, home_tree):
        tree, home, utilities, _, _ = home_tree
        tree.reparent(utilities, None)
        assert utilities.is_root
        assert home.is_leaf

    def test_add_child_twice_is_noop(self, home_tree):
        tree, home, utilities, _, _ = home_tree
        tree.add_child(home, utilities)
        assert home.child_ids == [utilities.id]

    def test_get_unknown(self, tree):
        with pytest.raises(NotFoundError):
            tree.get(Category(name="Ghost").id)

    def test_from_categories(self, home_tree):
        """Test rebuilding a tree from already-linked categories."""
        tree, _, _, electricity, _ = home_tree
        rebuilt = CategoryTree.from_categories(list(tree))
        assert len(rebuilt) == 4
        assert rebuilt.label(electricity) == "Home > Utilities > Electricity"


class TestSiblingNames:
    """Tests for sibling name uniqueness."""

    def test_duplicate_root_name(self, tree):
        tree.add(Category(name="Food"))
        with pytest.raises(DuplicateCategoryNameError):
            tree.add(Category(name="food"))

    def test_same_name_under_different_parents(self, home_tree):
        """Test that names only need to be unique among siblings."""
        tree, home, _, _, food = home_tree
        tree.add(Category(name="Other"), home)
        tree.add(Category(name="Other"), food)

    def test_move_into_name_clash(self, home_tree):
        tree, home, utilities, _, food = home_tree
        clash = tree.add(Category(name="Utilities"), food)
        with pytest.raises(DuplicateCategoryNameError):
            tree.reparent(clash, home)
        assert clash.parent_id == food.id

    def test_rename(self, home_tree):
        tree, _, utilities, _, _ = home_tree
        tree.rename(utilities, "Bills")
        assert utilities.name == "Bills"

    def test_rename_case_only(self, home_tree):
        """Test that changing only the case is always allowed."""
        tree, _, utilities, _, _ = home_tree
        tree.rename(utilities, "UTILITIES")
        assert utilities.name == "UTILITIES"

    def test_rename_to_sibling_name(self, home_tree):
        tree, home, _, _, food = home_tree
        with pytest.raises(DuplicateCategoryNameError):
            tree.rename(food, "home")


class TestRemoval:
    """Tests for deleting categories."""

    def test_cannot_remove_with_children(self, home_tree):
        tree, home, _, _, _ = home_tree
        assert not tree.can_delete(home)
        with pytest.raises(CategoryHasChildrenError):
            tree.remove(home)
        assert home in tree

    def test_remove_leaf(self, home_tree):
        tree, _, utilities, electricity, _ = home_tree
        assert tree.can_delete(electricity)
        tree.remove(electricity)
        assert electricity not in tree
        assert utilities.is_leaf

    def test_set_active(self, home_tree):
        tree, home, utilities, electricity, food = home_tree
        tree.set_active(food, False)
        assert tree.active() == [home, utilities, electricity]
