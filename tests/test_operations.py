import gzip
import io
import lzma
import unittest
from logging import getLogger
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from filter_streams import FileOpenError
from filter_streams.operations import open_file_for_read, open_file_for_write


class TestFileOperations(unittest.TestCase):
    CONTENT = "This is a test\nWith multiple lines\nBye!"

    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_write_then_read(self):
        for name in ("f.txt", "f.jsonl.gz", "f.bz2", "f.xz"):
            path = self.root / "nested" / "dir" / name

            with open_file_for_write(path) as f:
                f.write(self.CONTENT)

            with open_file_for_read(path) as f:
                self.assertEqual(f.read(), self.CONTENT)

            with open_file_for_read(path) as f:
                for la, lb in zip(f, self.CONTENT.split("\n")):
                    self.assertEqual(la.strip(), lb)

    def test_file_is_compressed(self):
        path = self.root / "f.gz"
        with open_file_for_write(path) as f:
            f.write(self.CONTENT)

        with gzip.open(path, "rt") as g:
            self.assertEqual(g.read(), self.CONTENT)

    def test_binary_modes(self):
        path = self.root / "f.xz"
        with open_file_for_write(path, "wb", level=0) as f:
            f.write(self.CONTENT.encode("utf-8"))

        with open_file_for_read(path, "rb") as f:
            self.assertEqual(f.read(), self.CONTENT.encode("utf-8"))

        self.assertEqual(
            lzma.decompress(path.read_bytes()).decode("utf-8"), self.CONTENT
        )

    def test_append_adds_member(self):
        path = self.root / "f.gz"
        with open_file_for_write(path) as f:
            f.write("first\n")
        with open_file_for_write(path, "a") as f:
            f.write("second\n")

        with open_file_for_read(path) as f:
            self.assertEqual(f.read(), "first\nsecond\n")

    def test_explicit_compression(self):
        path = self.root / "f.dat"
        with open_file_for_write(path, compression="gzip") as f:
            f.write(self.CONTENT)

        with open_file_for_read(path, compression="gzip") as f:
            self.assertEqual(f.read(), self.CONTENT)

    def test_skip_if_empty(self):
        logger = getLogger(__name__)
        path = self.root / "empty.gz"
        with self.assertLogs(logger, level="INFO"):
            with open_file_for_write(path, skip_if_empty=True, logger=logger):
                pass
        self.assertFalse(path.exists())

        path = self.root / "full.gz"
        with open_file_for_write(path, skip_if_empty=True) as f:
            f.write(self.CONTENT)
        self.assertTrue(path.exists())

    def test_stdio(self):
        buffer = io.BytesIO()
        stdout = io.TextIOWrapper(buffer)
        with mock.patch("sys.stdout", stdout):
            with open_file_for_write("-") as f:
                f.write(self.CONTENT)
            self.assertEqual(buffer.getvalue().decode(), self.CONTENT)

        stdin = io.TextIOWrapper(io.BytesIO(self.CONTENT.encode()))
        with mock.patch("sys.stdin", stdin):
            with open_file_for_read("-") as f:
                self.assertEqual(f.read(), self.CONTENT)

    def test_missing_file(self):
        with self.assertRaises(FileOpenError):
            with open_file_for_read(self.root / "missing.txt"):
                pass

    def test_wrong_mode(self):
        with self.assertRaises(AssertionError):
            with open_file_for_read(self.root / "f.txt", "w"):
                pass

        with self.assertRaises(AssertionError):
            with open_file_for_write(self.root / "f.txt", "r"):
                pass
