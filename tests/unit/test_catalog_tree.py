import unittest

from catalog_sync.catalog_tree import (
    Leaf,
    delete_at_path,
    get_at_path,
    set_at_path,
    walk_leaves
)


class TestWalkLeaves(unittest.TestCase):
    def test_leaves_come_out_sorted_by_key_at_every_level(self):
        catalog = {"b": {"y": "2", "x": "1"}, "a": {"c": "3"}}
        leaves = [(".".join(leaf.path), leaf.value) for leaf in walk_leaves(catalog)]
        self.assertEqual(leaves, [("a.c", "3"), ("b.x", "1"), ("b.y", "2")])

    def test_order_is_code_point_not_locale(self):
        # Upper case sorts before lower case in code-point order.
        catalog = {"b": "1", "B": "2", "a": "3", "_": "4"}
        self.assertEqual([leaf.path for leaf in walk_leaves(catalog)],
                         [("B",), ("_",), ("a",), ("b",)])

    def test_non_string_values_are_skipped(self):
        catalog = {"count": 3, "items": ["a", "b"], "nothing": None, "flag": True, "ok": "yes"}
        self.assertEqual(list(walk_leaves(catalog)), [Leaf(("ok",), "yes")])

    def test_walk_is_restartable_and_deterministic(self):
        catalog = {"menu": {"file": "File", "edit": "Edit"}, "app": {"title": "Welcome"}}
        self.assertEqual(list(walk_leaves(catalog)), list(walk_leaves(catalog)))

    def test_empty_and_none_catalogs_have_no_leaves(self):
        self.assertEqual(list(walk_leaves({})), [])
        self.assertEqual(list(walk_leaves(None)), [])

    def test_empty_nested_objects_yield_nothing(self):
        self.assertEqual(list(walk_leaves({"a": {"b": {}}})), [])


class TestPathMutation(unittest.TestCase):
    def test_set_creates_nested_objects(self):
        catalog = {}
        set_at_path(catalog, ("foo", "bar", "baz"), "ok")
        self.assertEqual(catalog, {"foo": {"bar": {"baz": "ok"}}})
        self.assertEqual(get_at_path(catalog, ("foo", "bar", "baz")), "ok")

    def test_set_replaces_non_object_intermediates(self):
        catalog = {"foo": "was a leaf", "list": [1, 2]}
        set_at_path(catalog, ("foo", "bar"), "x")
        set_at_path(catalog, ("list", "item"), "y")
        self.assertEqual(catalog, {"foo": {"bar": "x"}, "list": {"item": "y"}})

    def test_set_overwrites_existing_leaf_and_keeps_siblings(self):
        catalog = {"app": {"title": "Old", "about": "About"}}
        set_at_path(catalog, ("app", "title"), "New")
        self.assertEqual(catalog, {"app": {"title": "New", "about": "About"}})

    def test_set_then_get_round_trip(self):
        for path in [("a",), ("a", "b"), ("x", "y", "z", "w")]:
            catalog = {"a": {"c": "keep"}}
            set_at_path(catalog, path, "value")
            self.assertEqual(get_at_path(catalog, path), "value")

    def test_set_rejects_empty_path(self):
        with self.assertRaises(ValueError):
            set_at_path({}, (), "x")

    def test_get_missing_path_returns_none(self):
        catalog = {"a": {"b": "c"}}
        self.assertIsNone(get_at_path(catalog, ("a", "x")))
        self.assertIsNone(get_at_path(catalog, ("a", "b", "c")))

    def test_delete_prunes_empty_parents(self):
        catalog = {"foo": {"bar": {"baz": "ok"}, "keep": "x"}}
        delete_at_path(catalog, ("foo", "bar", "baz"))
        self.assertEqual(catalog, {"foo": {"keep": "x"}})
        delete_at_path(catalog, ("foo", "keep"))
        self.assertEqual(catalog, {})

    def test_delete_stops_at_first_non_empty_ancestor(self):
        catalog = {"a": {"b": {"c": {"d": "leaf"}}, "sibling": "s"}}
        delete_at_path(catalog, ("a", "b", "c", "d"))
        self.assertEqual(catalog, {"a": {"sibling": "s"}})

    def test_delete_missing_path_is_a_no_op(self):
        catalog = {"a": {"b": "c"}, "s": "leaf"}
        delete_at_path(catalog, ("x", "y"))
        delete_at_path(catalog, ("s", "y"))
        delete_at_path(catalog, ("a", "missing"))
        self.assertEqual(catalog, {"a": {"b": "c"}, "s": "leaf"})

    def test_delete_top_level_leaf(self):
        catalog = {"a": "1", "b": "2"}
        delete_at_path(catalog, ("a",))
        self.assertEqual(catalog, {"b": "2"})


if __name__ == '__main__':
    unittest.main()
