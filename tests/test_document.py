"""Tests for nested document serialization."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from xmlprompt import document
from xmlprompt.core import EmptySelectionError
from xmlprompt.document import (
    DocBranch,
    DocLeaf,
    build_structure,
    generate_document,
    render_document,
    root_tag_name,
)


class GenerateDocumentTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "sub").mkdir()
        (self.root / "a.txt").write_text("hello", encoding="utf-8")
        (self.root / "sub" / "b.txt").write_text("world", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip_scenario(self) -> None:
        doc = generate_document(["a.txt", "sub/b.txt"], self.root, root_name="root")

        self.assertEqual(
            doc.text,
            "<root>\n"
            "  <a.txt>\nhello\n  </a.txt>\n"
            "  <sub>\n"
            "    <b.txt>\nworld\n    </b.txt>\n"
            "  </sub>\n"
            "</root>",
        )
        self.assertEqual(doc.included, ["a.txt", "sub/b.txt"])
        self.assertEqual(doc.skipped, [])

    def test_root_tag_defaults_to_directory_name(self) -> None:
        doc = generate_document(["a.txt"], self.root)
        self.assertTrue(doc.text.startswith(f"<{self.root.name}>\n"))
        self.assertTrue(doc.text.endswith(f"</{self.root.name}>"))

    def test_root_tag_name_fallback(self) -> None:
        self.assertEqual(root_tag_name("."), "root")
        self.assertEqual(root_tag_name(Path(".")), "root")
        self.assertEqual(root_tag_name("/"), "root")
        self.assertEqual(root_tag_name("projects/demo"), "demo")
        self.assertEqual(root_tag_name("projects/demo/"), "demo")

    def test_empty_selection_reads_nothing(self) -> None:
        with mock.patch.object(document, "read_files") as read_files:
            with self.assertRaises(EmptySelectionError):
                generate_document([], self.root)
        read_files.assert_not_called()

    def test_unreadable_file_is_skipped_with_warning(self) -> None:
        (self.root / "sub" / "c.txt").write_text("gone soon", encoding="utf-8")
        (self.root / "sub" / "c.txt").unlink()

        doc = generate_document(["a.txt", "sub/c.txt", "sub/b.txt"], self.root, root_name="root")

        self.assertNotIn("c.txt", doc.text)
        self.assertIn("<b.txt>\nworld\n", doc.text)
        self.assertIn("<a.txt>\nhello\n", doc.text)
        self.assertEqual([s.path for s in doc.skipped], ["sub/c.txt"])
        self.assertEqual(doc.included, ["a.txt", "sub/b.txt"])

    def test_lone_unreadable_file_leaves_no_empty_directory(self) -> None:
        doc = generate_document(["a.txt", "ghost/missing.txt"], self.root, root_name="root")

        self.assertNotIn("ghost", doc.text)
        self.assertEqual(len(doc.skipped), 1)

    def test_contents_are_not_escaped_by_default(self) -> None:
        (self.root / "tag.html").write_text("<b>&</b>", encoding="utf-8")

        raw = generate_document(["tag.html"], self.root, root_name="root")
        escaped = generate_document(["tag.html"], self.root, root_name="root", escape=True)

        self.assertIn("\n<b>&</b>\n", raw.text)
        self.assertIn("\n&lt;b&gt;&amp;&lt;/b&gt;\n", escaped.text)

    def test_worker_pool_matches_sequential_order(self) -> None:
        names = [f"sub/f{i:02d}.txt" for i in range(20)] + ["a.txt"]
        for i, name in enumerate(names[:-1]):
            (self.root / name).write_text(str(i), encoding="utf-8")

        sequential = generate_document(names, self.root, max_workers=1)
        pooled = generate_document(names, self.root, max_workers=8)

        self.assertEqual(sequential.text, pooled.text)
        self.assertLess(pooled.text.index("f00.txt"), pooled.text.index("f19.txt"))

    def test_invalid_utf8_is_replaced(self) -> None:
        (self.root / "bin.dat").write_bytes(b"ok\xff")

        doc = generate_document(["bin.dat"], self.root, root_name="root")

        self.assertIn("ok�", doc.text)


class StructureTests(unittest.TestCase):
    def test_shared_prefixes_merge_in_first_selected_order(self) -> None:
        structure = build_structure(
            [("z/one.txt", "1"), ("a.txt", "2"), ("z/two.txt", "3")]
        )

        self.assertEqual(list(structure.children), ["z", "a.txt"])
        z = structure.children["z"]
        self.assertIsInstance(z, DocBranch)
        self.assertEqual(z.children, {"one.txt": DocLeaf("1"), "two.txt": DocLeaf("3")})

    def test_render_nested_branches(self) -> None:
        structure = DocBranch({"d": DocBranch({"e": DocBranch({"f.txt": DocLeaf("x")})})})

        self.assertEqual(
            render_document(structure, "top"),
            "<top>\n  <d>\n    <e>\n      <f.txt>\nx\n      </f.txt>\n    </e>\n  </d>\n</top>",
        )

    def test_output_is_stripped(self) -> None:
        text = render_document(DocBranch({"a": DocLeaf("  x  ")}), "r")
        self.assertEqual(text, "<r>\n  <a>\n  x  \n  </a>\n</r>")


if __name__ == "__main__":
    unittest.main()
