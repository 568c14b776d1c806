import json
import os
import tempfile
import unittest
from unittest.mock import patch

from catalog_sync.catalog_store import CatalogStore, validate_catalog
from catalog_sync.errors import CatalogFormatError


class TestCatalogStore(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = CatalogStore(self.temp_dir.name, "translation")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_catalog_path_layout(self):
        self.assertEqual(
            self.store.catalog_path("fr"),
            os.path.join(self.temp_dir.name, "fr", "translation.json")
        )

    def test_missing_file_reads_as_empty(self):
        self.assertEqual(self.store.read(self.store.catalog_path("de")), {})

    def test_write_then_read(self):
        path = self.store.catalog_path("fr")
        document = {"app": {"about": "À propos de l'app", "title": "Bienvenue"}}
        self.store.write_atomic(path, document)

        self.assertEqual(self.store.read(path), document)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        # Non-ASCII text is stored as-is, not escaped.
        self.assertIn("À propos", content)
        self.assertEqual(os.listdir(os.path.dirname(path)), ["translation.json"])

    def test_failed_write_keeps_old_content_and_cleans_up(self):
        path = self.store.catalog_path("fr")
        self.store.write_atomic(path, {"a": "old"})

        with patch('catalog_sync.catalog_store.os.replace', side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.store.write_atomic(path, {"a": "new"})

        self.assertEqual(self.store.read(path), {"a": "old"})
        self.assertEqual(os.listdir(os.path.dirname(path)), ["translation.json"])

    def test_invalid_json_is_rejected(self):
        path = self.store.catalog_path("fr")
        os.makedirs(os.path.dirname(path))
        with open(path, 'w', encoding='utf-8') as f:
            f.write("{not json")
        with self.assertRaises(CatalogFormatError):
            self.store.read(path)

    def test_arrays_are_rejected_at_load(self):
        path = self.store.catalog_path("fr")
        os.makedirs(os.path.dirname(path))
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({"menu": {"items": ["a", "b"]}}, f)
        with self.assertRaisesRegex(CatalogFormatError, "malformed at .menu"):
            self.store.read(path)


class TestValidateCatalog(unittest.TestCase):
    def test_nested_strings_are_valid(self):
        document = {"a": "1", "b": {"c": "2", "d": {"e": "3"}}, "empty": {}}
        self.assertIs(validate_catalog(document, "test"), document)

    def test_non_string_leaves_are_invalid(self):
        for document in ({"a": 1}, {"a": None}, {"a": {"b": True}}, ["a"], "text"):
            with self.subTest(document=document):
                with self.assertRaises(CatalogFormatError):
                    validate_catalog(document, "test")


if __name__ == '__main__':
    unittest.main()
