from __future__ import annotations

import unittest

from sokoban_search import SolverConfig, solve
from sokoban_search.board import (
    BoardState,
    Cell,
    InvalidStateError,
    Move,
    Position,
    load_board,
)
from sokoban_search.search.deadlock import (
    filter_moves,
    is_cluster_trap,
    is_corner_trap,
    is_deadlock_move,
)
from sokoban_search.search.engine import SearchLimits, SolutionSearch
from sokoban_search.search.moves import generate_moves
from sokoban_search.search.tree import DuplicateDetector, NodeStatus, SearchTree

SINGLE_PUSH = """#####
#&b*#
#####
"""

CORRIDOR = """######
#&b *#
######
"""

ALREADY_SOLVED = """####
#&@#
####
"""

BOX_IN_CORNER = """#####
#b  #
#  *#
# & #
#####
"""

EVERY_PUSH_DEAD = """#####
#   #
#b  #
#& *#
#####
"""

TWO_ROOMS = """#######
#&#   #
#b  #b#
#*###*#
#######
"""

UNSOLVABLE = """######
#b   #
#  b #
# &**#
######
"""

OPEN_ROOM = """#######
#&    #
#  b  #
#     #
#######
"""


def _state(drawing: str) -> BoardState:
    state, _drawing = load_board(drawing, validate=False)
    return state


def _move(sx: int, sy: int, dx: int, dy: int) -> Move:
    return Move(Position(sx, sy), Position(dx, dy))


class TestMoveGeneration(unittest.TestCase):
    def test_order_follows_boxes_then_directions(self) -> None:
        moves = generate_moves(_state(OPEN_ROOM))
        self.assertEqual(
            moves,
            [
                _move(4, 3, 4, 2),
                _move(4, 3, 4, 4),
                _move(4, 3, 3, 3),
                _move(4, 3, 5, 3),
            ],
        )

    def test_push_needs_reachable_standing_cell(self) -> None:
        moves = generate_moves(_state(CORRIDOR))
        self.assertEqual(moves, [_move(3, 2, 4, 2)])

    def test_box_in_corner_has_no_pushes(self) -> None:
        self.assertEqual(generate_moves(_state(BOX_IN_CORNER)), [])

    def test_pushes_are_single_orthogonal_steps(self) -> None:
        state = _state(OPEN_ROOM)
        for move in generate_moves(state):
            self.assertIn(move.direction, ("up", "down", "left", "right"))
            self.assertTrue(state.get(move.source).has_box)
            self.assertTrue(state.get(move.destination).is_walkable)


class TestDeadlocks(unittest.TestCase):
    def test_push_onto_target_is_never_dead(self) -> None:
        state = _state(SINGLE_PUSH)
        self.assertFalse(is_deadlock_move(state, _move(3, 2, 4, 2)))

    def test_corner_push_is_dead(self) -> None:
        state = _state(EVERY_PUSH_DEAD)
        self.assertTrue(is_deadlock_move(state, _move(2, 3, 2, 2)))
        self.assertTrue(is_deadlock_move(state, _move(2, 3, 2, 4)))
        self.assertEqual(filter_moves(state, generate_moves(state)), [])

    def test_corner_helper_reads_lookup(self) -> None:
        state = _state(EVERY_PUSH_DEAD)
        self.assertTrue(is_corner_trap(lookup=state.get, destination=Position(2, 2)))
        self.assertFalse(is_corner_trap(lookup=state.get, destination=Position(3, 3)))

    def test_cluster_against_wall_and_box_is_dead(self) -> None:
        state = _state(
            """#######
# b   #
#  b  #
# &   #
#######
"""
        )
        self.assertTrue(is_cluster_trap(lookup=state.get, destination=Position(4, 2)))
        self.assertTrue(is_deadlock_move(state, _move(4, 3, 4, 2)))

    def test_wall_line_without_targets_is_dead(self) -> None:
        state = _state(
            """#######
#     #
# b   #
#  &  #
#    *#
#######
"""
        )
        self.assertTrue(is_deadlock_move(state, _move(3, 3, 3, 2)))

    def test_wall_line_with_target_is_alive(self) -> None:
        state = _state(
            """#######
#    *#
# b   #
#  &  #
#     #
#######
"""
        )
        self.assertFalse(is_deadlock_move(state, _move(3, 3, 3, 2)))

    def test_wall_line_with_notch_is_alive(self) -> None:
        state = _state(
            """#######
### ###
#     #
# b   #
#  &  #
#######
"""
        )
        self.assertFalse(is_deadlock_move(state, _move(3, 4, 3, 3)))

    def test_wall_line_leaving_board_raises(self) -> None:
        state = BoardState.from_triples(
            [
                (1, 1, Cell.WALL),
                (2, 1, Cell.WALL),
                (3, 1, Cell.WALL),
                (1, 2, Cell.WALL),
                (2, 2, Cell.EMPTY),
                (3, 2, Cell.EMPTY),
                (1, 3, Cell.WALL),
                (2, 3, Cell.EMPTY),
                (3, 3, Cell.BOX),
            ],
            (2, 3),
        )
        with self.assertRaises(InvalidStateError):
            is_deadlock_move(state, _move(3, 3, 3, 2))


class TestSearchTree(unittest.TestCase):
    def test_attach_links_parent_and_child(self) -> None:
        root = _state(CORRIDOR)
        tree = SearchTree(root)
        move = _move(3, 2, 4, 2)
        node = tree.new_node(SearchTree.ROOT, root.apply(move), move)
        self.assertEqual(len(tree), 1)
        handle = tree.attach(node)
        self.assertEqual(tree.root.children, [handle])
        self.assertEqual(tree[handle].depth, 1)
        self.assertEqual(list(tree.ancestors(handle)), [handle, SearchTree.ROOT])
        self.assertEqual(tree.moves_to(handle), [move])

    def test_preorder_respects_max_depth(self) -> None:
        root = _state(CORRIDOR)
        tree = SearchTree(root)
        first = _move(3, 2, 4, 2)
        second = _move(4, 2, 5, 2)
        child_state = root.apply(first)
        child = tree.attach(tree.new_node(SearchTree.ROOT, child_state, first))
        grandchild = tree.attach(tree.new_node(child, child_state.apply(second), second))
        self.assertEqual(list(tree.preorder()), [SearchTree.ROOT, child, grandchild])
        self.assertEqual(list(tree.preorder(max_depth=1)), [SearchTree.ROOT, child])

    def test_push_and_push_back_is_duplicate_for_both_strategies(self) -> None:
        root = _state(OPEN_ROOM)
        right = _move(4, 3, 5, 3)
        back = _move(5, 3, 4, 3)
        for strategy in ("index", "scan"):
            with self.subTest(strategy=strategy):
                tree = SearchTree(root)
                detector = DuplicateDetector(tree, strategy=strategy)
                child = tree.new_node(SearchTree.ROOT, root.apply(right), right)
                self.assertFalse(detector.is_duplicate(child))
                handle = tree.attach(child)
                detector.register(handle)
                returned = tree.new_node(handle, child.state.apply(back), back)
                self.assertEqual(returned.state, root)
                self.assertTrue(detector.is_duplicate(returned))
                self.assertEqual(detector.filter([returned]), [])

    def test_sibling_states_at_same_depth_are_kept(self) -> None:
        root = _state(OPEN_ROOM)
        move = _move(4, 3, 5, 3)
        for strategy in ("index", "scan"):
            with self.subTest(strategy=strategy):
                tree = SearchTree(root)
                detector = DuplicateDetector(tree, strategy=strategy)
                first = tree.new_node(SearchTree.ROOT, root.apply(move), move)
                detector.register(tree.attach(first))
                twin = tree.new_node(SearchTree.ROOT, root.apply(move), move)
                self.assertFalse(detector.is_duplicate(twin))

    def test_unknown_strategy_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DuplicateDetector(SearchTree(_state(CORRIDOR)), strategy="hash")  # type: ignore[arg-type]


class TestSolve(unittest.TestCase):
    def test_single_push(self) -> None:
        result = solve(_state(SINGLE_PUSH))
        self.assertTrue(result.solved)
        self.assertEqual(result.moves(), [_move(3, 2, 4, 2)])
        self.assertTrue(result.state.is_solved())

    def test_already_solved_root(self) -> None:
        result = solve(_state(ALREADY_SOLVED))
        self.assertTrue(result.solved)
        self.assertEqual(result.terminal, SearchTree.ROOT)
        self.assertEqual(result.moves(), [])
        self.assertEqual(result.nodes_expanded, 1)

    def test_box_in_corner_blocks_root(self) -> None:
        result = solve(_state(BOX_IN_CORNER))
        self.assertFalse(result.solved)
        self.assertIs(result.status, NodeStatus.BLOCKED)
        self.assertEqual(result.tree.root.children, [])

    def test_all_pushes_dead_blocks_root(self) -> None:
        result = solve(_state(EVERY_PUSH_DEAD))
        self.assertIs(result.status, NodeStatus.BLOCKED)
        self.assertEqual(len(result.tree), 1)

    def test_two_rooms_depth_first(self) -> None:
        result = solve(_state(TWO_ROOMS))
        self.assertTrue(result.solved)
        self.assertEqual(result.moves(), [_move(2, 3, 2, 4), _move(6, 3, 6, 4)])
        states = result.states()
        self.assertEqual(len(states), 3)
        self.assertEqual(states[0], _state(TWO_ROOMS))

    def test_corridor_breadth_first(self) -> None:
        result = solve(_state(CORRIDOR), SolverConfig(mode="breadth-first"))
        self.assertTrue(result.solved)
        self.assertEqual(result.mode, "breadth-first")
        self.assertEqual(result.moves(), [_move(3, 2, 4, 2), _move(4, 2, 5, 2)])
        self.assertEqual(result.nodes_expanded, 3)

    def test_breadth_first_matches_depth_first_on_two_rooms(self) -> None:
        result = solve(_state(TWO_ROOMS), SolverConfig(mode="breadth-first"))
        self.assertTrue(result.solved)
        self.assertEqual(len(result.moves()), 2)

    def test_unsolvable_board_exhausts_tree(self) -> None:
        for mode in ("depth-first", "breadth-first"):
            with self.subTest(mode=mode):
                result = solve(_state(UNSOLVABLE), SolverConfig(mode=mode))
                self.assertFalse(result.solved)
                self.assertFalse(result.cancelled)
                self.assertIs(result.status, NodeStatus.BLOCKED)
                self.assertEqual(result.nodes_expanded, len(result.tree))
                for handle in range(len(result.tree)):
                    self.assertIn(
                        result.tree[handle].status,
                        (NodeStatus.HAS_POTENTIAL, NodeStatus.BLOCKED),
                    )

    def test_tree_edges_are_single_pushes(self) -> None:
        result = solve(_state(UNSOLVABLE))
        tree = result.tree
        for handle in range(1, len(tree)):
            node = tree[handle]
            parent = tree[node.parent]  # type: ignore[index]
            self.assertEqual(node.depth, parent.depth + 1)
            self.assertEqual(node.state.box_count, parent.state.box_count)
            self.assertEqual(node.state.target_count, parent.state.target_count)
            changed = [
                pos
                for pos, cell in parent.state.grid.items()
                if node.state.get(pos) is not cell
            ]
            self.assertEqual(len(changed), 2)
            self.assertEqual(set(changed), {node.move.source, node.move.destination})

    def test_no_attached_node_repeats_a_shallower_state(self) -> None:
        tree = solve(_state(UNSOLVABLE)).tree
        for handle in range(1, len(tree)):
            node = tree[handle]
            for other in range(len(tree)):
                if tree[other].depth < node.depth:
                    self.assertNotEqual(tree[other].state, node.state)

    def test_duplicate_strategies_build_the_same_tree(self) -> None:
        for drawing in (TWO_ROOMS, UNSOLVABLE, CORRIDOR):
            for mode in ("depth-first", "breadth-first"):
                with self.subTest(mode=mode, board=drawing.splitlines()[1]):
                    index = solve(
                        _state(drawing),
                        SolverConfig(mode=mode, duplicate_strategy="index"),
                    )
                    scan = solve(
                        _state(drawing),
                        SolverConfig(mode=mode, duplicate_strategy="scan"),
                    )
                    self.assertEqual(index.moves(), scan.moves())
                    self.assertEqual(index.nodes_expanded, scan.nodes_expanded)
                    self.assertEqual(len(index.tree), len(scan.tree))


class TestCancellation(unittest.TestCase):
    def test_should_stop_before_root(self) -> None:
        result = solve(_state(TWO_ROOMS), should_stop=lambda: True)
        self.assertTrue(result.cancelled)
        self.assertFalse(result.solved)
        self.assertIs(result.status, NodeStatus.OPEN)
        self.assertEqual(result.nodes_expanded, 0)

    def test_max_nodes_stops_after_root(self) -> None:
        result = solve(_state(TWO_ROOMS), SolverConfig(max_nodes=1))
        self.assertTrue(result.cancelled)
        self.assertEqual(result.terminal, SearchTree.ROOT)
        self.assertEqual(result.nodes_expanded, 1)

    def test_should_stop_is_polled_between_visits(self) -> None:
        calls: list[int] = []

        def stop() -> bool:
            calls.append(1)
            return len(calls) > 2

        result = solve(_state(UNSOLVABLE), SolverConfig(mode="breadth-first"), should_stop=stop)
        self.assertTrue(result.cancelled)
        self.assertEqual(result.nodes_expanded, 2)

    def test_limits_are_validated(self) -> None:
        with self.assertRaises(ValueError):
            SearchLimits(max_nodes=0)
        with self.assertRaises(ValueError):
            SearchLimits(time_limit_s=0)

    def test_unknown_mode_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            SolutionSearch(_state(CORRIDOR)).run("sideways")  # type: ignore[arg-type]


class TestProgressHook(unittest.TestCase):
    def test_reporter_sees_every_visit(self) -> None:
        seen: list[tuple[int, bool]] = []

        class Recorder:
            def on_node(self, *, depth: int, frontier: int, solved: bool) -> None:
                seen.append((depth, solved))

            def close(self) -> None:
                return

        result = solve(_state(CORRIDOR), progress=Recorder())  # type: ignore[arg-type]
        self.assertEqual(seen, [(0, False), (1, False), (2, True)])
        self.assertEqual(result.nodes_expanded, 3)


if __name__ == "__main__":
    unittest.main()
