import tempfile
import unittest
from pathlib import Path

from darknet_kit.metadata import load_class_names


class TestLoadClassNames(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "coco.names"
        path.write_text(text, encoding="utf-8")
        return path

    def test_one_name_per_line(self) -> None:
        names = load_class_names(self._write("person\nbicycle\ncar\n"))
        self.assertEqual(names, {0: "person", 1: "bicycle", 2: "car"})

    def test_trailing_blank_lines_ignored(self) -> None:
        names = load_class_names(self._write("person\r\nbicycle\r\n\n\n"))
        self.assertEqual(names, {0: "person", 1: "bicycle"})

    def test_inner_blank_line_keeps_slot(self) -> None:
        names = load_class_names(self._write("person\n\ncar\n"))
        self.assertEqual(names[2], "car")
        self.assertEqual(names[1], "")

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_class_names("/nonexistent/coco.names")


if __name__ == "__main__":
    unittest.main()
