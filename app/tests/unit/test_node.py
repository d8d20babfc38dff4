"""Tests for NodeData labels and reference flags."""

from models.node import NodeData
from tests.conftest import make_graph


class TestNodeLabel:
    def test_plain_label(self):
        assert NodeData("out").get_label() == "out"

    def test_reference_label(self):
        assert NodeData("0", is_reference=True).get_label() == "0 (ref)"

    def test_id_normalised_to_str(self):
        assert NodeData(7).node_id == "7"


class TestReferenceFlags:
    def test_flags_follow_reference(self):
        graph = make_graph(["a", "GND", "b"], [])
        assert [n.is_reference for n in graph.node_data()] == [False, True, False]

    def test_flags_move_with_explicit_reference(self):
        graph = make_graph(["0", "1"], [])
        graph.set_reference("1")
        assert graph.node("1").is_reference
        assert not graph.node("0").is_reference

    def test_flags_after_reference_removed(self):
        graph = make_graph(["0", "1", "2"], [])
        graph.remove_node("0")
        # Falls back to the first remaining node
        assert graph.node("1").is_reference
        assert graph.node("1").get_label() == "1 (ref)"

    def test_handle_is_arena_index(self):
        graph = make_graph(["a", "b", "c"], [])
        graph.remove_node("b")
        assert graph.node("c").handle == 2
        assert graph.node_handle("c") == 2
