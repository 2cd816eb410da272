import pytest

from termtree.core.models import VIRTUAL_ROOT, Visit
from termtree.core.term_index import TermIndex
from termtree.core.walker import CycleDetected, HierarchyWalker

from conftest import VID, term


def walk(terms, root=VIRTUAL_ROOT, max_depth=None, **kw):
    return list(HierarchyWalker(TermIndex.build(VID, terms), root, max_depth, **kw))


class TestPreOrder:
    def test_chain(self, chain_terms):
        assert walk(chain_terms) == [Visit(1, 0, 0), Visit(2, 1, 1), Visit(3, 2, 2)]

    def test_diamond_emits_one_visit_per_parent_edge(self, diamond_terms):
        assert walk(diamond_terms) == [
            Visit(1, 0, 0),
            Visit(2, 1, 1),
            Visit(4, 2, 2),
            Visit(3, 1, 1),
            Visit(4, 2, 3),
        ]

    def test_subtree_finishes_before_next_sibling(self):
        terms = [
            term(1, [], "A"),
            term(2, [1], "A1"),
            term(3, [2], "A1a"),
            term(4, [2], "A1b"),
            term(5, [1], "A2"),
            term(6, [], "B"),
        ]
        assert [v.term_id for v in walk(terms)] == [1, 2, 3, 4, 5, 6]

    def test_leaf_siblings_after_a_descent_are_resumed(self):
        terms = [
            term(1, [], "P"),
            term(2, [1], "leaf-1"),
            term(3, [1], "branch"),
            term(4, [3], "deep"),
            term(5, [1], "leaf-2"),
            term(6, [1], "leaf-3"),
        ]
        visits = walk(terms)
        assert [(v.term_id, v.depth) for v in visits] == [(1, 0), (2, 1), (3, 1), (4, 2), (5, 1), (6, 1)]

    def test_shared_subtree_is_walked_in_full_from_each_parent(self):
        # D has its own child E; both copies of D must bring E along
        terms = [
            term(1, [], "A"),
            term(2, [1], "B"),
            term(3, [1], "C"),
            term(4, [2, 3], "D"),
            term(5, [4], "E"),
        ]
        assert [(v.term_id, v.depth) for v in walk(terms)] == [
            (1, 0), (2, 1), (4, 2), (5, 3), (3, 1), (4, 2), (5, 3),
        ]

    def test_walks_can_be_repeated_on_the_same_index(self, diamond_terms):
        index = TermIndex.build(VID, diamond_terms)
        first = list(HierarchyWalker(index).walk())
        second = list(HierarchyWalker(index).walk())
        assert first == second

    def test_interleaved_walks_do_not_share_cursors(self, diamond_terms):
        index = TermIndex.build(VID, diamond_terms)
        a = HierarchyWalker(index).walk()
        b = HierarchyWalker(index).walk()
        pairs = list(zip(a, b))
        assert all(x == y for x, y in pairs)
        assert len(pairs) == 5


class TestRoots:
    def test_start_below_a_real_term(self, diamond_terms):
        assert walk(diamond_terms, root=1) == [Visit(2, 0, 1), Visit(4, 1, 2), Visit(3, 0, 1), Visit(4, 1, 3)]

    def test_root_itself_is_never_visited(self, diamond_terms):
        assert 2 not in [v.term_id for v in walk(diamond_terms, root=2)]

    def test_unknown_root(self, diamond_terms):
        assert walk(diamond_terms, root=999) == []

    def test_leaf_root(self, diamond_terms):
        assert walk(diamond_terms, root=4) == []


class TestDepthBound:
    @pytest.mark.parametrize("max_depth", [0, -1])
    def test_non_positive_bound_visits_nothing(self, diamond_terms, max_depth):
        assert walk(diamond_terms, max_depth=max_depth) == []

    def test_bound_of_one_keeps_top_level_only(self, diamond_terms):
        assert walk(diamond_terms, max_depth=1) == [Visit(1, 0, 0)]

    def test_bound_of_two_cuts_both_diamond_paths(self, diamond_terms):
        assert [(v.term_id, v.depth) for v in walk(diamond_terms, max_depth=2)] == [(1, 0), (2, 1), (3, 1)]

    @pytest.mark.parametrize("max_depth", [1, 2, 3, 4])
    def test_nothing_at_or_below_the_bound(self, diamond_terms, max_depth):
        assert all(v.depth < max_depth for v in walk(diamond_terms, max_depth=max_depth))

    def test_none_means_unbounded(self, chain_terms):
        assert len(walk(chain_terms, max_depth=None)) == 3


class TestCycles:
    def setup_method(self):
        # 1 -> 2 -> 3 -> 2
        self.terms = [term(1, [], "A"), term(2, [1, 3], "B"), term(3, [2], "C")]

    def test_cycle_is_reported(self):
        with pytest.raises(CycleDetected) as exc:
            walk(self.terms)
        assert exc.value.term_id == 2
        assert exc.value.path == (0, 1, 2, 3)
        assert isinstance(exc.value, ValueError)

    def test_cycle_beyond_the_bound_is_not_an_error(self):
        # 2 would be re-entered at depth 3, which is never expanded
        visits = walk(self.terms, max_depth=3)
        assert [(v.term_id, v.depth) for v in visits] == [(1, 0), (2, 1), (3, 2)]

    def test_unguarded_bounded_walk_matches_plain_truncation(self):
        visits = walk(self.terms, max_depth=4, guard_cycles=False)
        assert [(v.term_id, v.depth) for v in visits] == [(1, 0), (2, 1), (3, 2), (2, 3)]

    def test_self_parent(self):
        terms = [term(1, [], "A"), term(2, [1, 2], "loop")]
        with pytest.raises(CycleDetected):
            walk(terms)

    def test_diamond_is_not_a_cycle(self, diamond_terms):
        assert len(walk(diamond_terms)) == 5
