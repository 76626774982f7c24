import bz2
import gzip
import io
import lzma
import unittest

from filter_streams.codecs import Codec
from filter_streams.io_wrappers import (
    CompressorIO,
    DecompressorIO,
    ReadIO,
    WriteIO,
)

COMPRESS = {
    Codec.GZIP: gzip.compress,
    Codec.BZIP2: bz2.compress,
    Codec.LZMA: lzma.compress,
}

DECOMPRESS = {
    Codec.GZIP: gzip.decompress,
    Codec.BZIP2: bz2.decompress,
    Codec.LZMA: lzma.decompress,
}


class TestDecompressorIO(unittest.TestCase):
    CONTENT = b"This is a test\nWith multiple lines\nBye!"

    def test_read_all(self):
        for codec, compress in COMPRESS.items():
            stream = io.BytesIO(compress(self.CONTENT))
            reader = DecompressorIO(stream, codec=codec, chunk_size=5)
            self.assertEqual(reader.read(), self.CONTENT)
            self.assertEqual(reader.read(), b"")

    def test_read_sized(self):
        stream = io.BytesIO(gzip.compress(self.CONTENT))
        reader = DecompressorIO(stream, codec=Codec.GZIP, chunk_size=3)

        chunks = []
        while chunk := reader.read(4):
            self.assertLessEqual(len(chunk), 4)
            chunks.append(chunk)
        self.assertEqual(b"".join(chunks), self.CONTENT)

    def test_lines(self):
        for codec, compress in COMPRESS.items():
            stream = io.BytesIO(compress(self.CONTENT))
            reader = DecompressorIO(stream, codec=codec, chunk_size=7)
            self.assertEqual(list(reader), self.CONTENT.splitlines(True))

    def test_readline_size(self):
        stream = io.BytesIO(lzma.compress(self.CONTENT))
        reader = DecompressorIO(stream, codec=Codec.LZMA)
        self.assertEqual(reader.readline(4), b"This")
        self.assertEqual(reader.readline(), b" is a test\n")
        self.assertEqual(reader.readline(100), b"With multiple lines\n")
        self.assertEqual(reader.readline(), b"Bye!")
        self.assertEqual(reader.readline(), b"")

    def test_concatenated_streams(self):
        for codec, compress in COMPRESS.items():
            stream = io.BytesIO(compress(b"first\n") + compress(b"second\n"))
            reader = DecompressorIO(stream, codec=codec, chunk_size=11)
            self.assertEqual(reader.read(), b"first\nsecond\n")

    def test_gzip_zero_padding(self):
        stream = io.BytesIO(gzip.compress(self.CONTENT) + b"\x00" * 16)
        reader = DecompressorIO(stream, codec=Codec.GZIP)
        self.assertEqual(reader.read(), self.CONTENT)

    def test_empty_source(self):
        for codec in Codec:
            reader = DecompressorIO(io.BytesIO(), codec=codec)
            self.assertEqual(reader.read(), b"")

    def test_truncated_stream(self):
        for codec, compress in COMPRESS.items():
            data = compress(self.CONTENT * 10)
            reader = DecompressorIO(io.BytesIO(data[:-10]), codec=codec)
            with self.assertRaises(EOFError):
                reader.read()
            with self.assertRaises(EOFError):
                reader.read()

    def test_close_keeps_source_open(self):
        stream = io.BytesIO(gzip.compress(self.CONTENT))
        reader = DecompressorIO(stream, codec=Codec.GZIP)
        reader.close()
        self.assertTrue(reader.closed)
        self.assertFalse(stream.closed)

        with self.assertRaises(ValueError):
            reader.read()

    def test_buffered_reader(self):
        stream = io.BytesIO(bz2.compress(self.CONTENT))
        reader = io.BufferedReader(DecompressorIO(stream, codec=Codec.BZIP2))
        self.assertEqual(reader.read(), self.CONTENT)

    def test_pass_through(self):
        reader = ReadIO(io.BytesIO(self.CONTENT), chunk_size=2)
        self.assertEqual(reader.readline(), b"This is a test\n")
        # the buffer holds what was left over from the last chunk
        self.assertEqual(reader.read1(), b"W")
        self.assertEqual(reader.read(), self.CONTENT[16:])


class TestCompressorIO(unittest.TestCase):
    CONTENT = b"This is a test\nWith multiple lines\nBye!"

    def test_write(self):
        for codec, decompress in DECOMPRESS.items():
            stream = io.BytesIO()
            writer = CompressorIO(stream, codec=codec)
            for line in self.CONTENT.splitlines(True):
                self.assertEqual(writer.write(line), len(line))
            writer.close()

            self.assertFalse(stream.closed)
            self.assertEqual(decompress(stream.getvalue()), self.CONTENT)

    def test_close_twice(self):
        stream = io.BytesIO()
        writer = CompressorIO(stream, codec=Codec.GZIP, level=1)
        writer.write(self.CONTENT)
        writer.close()
        size = len(stream.getvalue())
        writer.close()
        self.assertEqual(len(stream.getvalue()), size)

        with self.assertRaises(ValueError):
            writer.write(self.CONTENT)

    def test_nothing_written(self):
        stream = io.BytesIO()
        CompressorIO(stream, codec=Codec.LZMA).close()
        self.assertEqual(lzma.decompress(stream.getvalue()), b"")

    def test_buffered_writer(self):
        stream = io.BytesIO()
        writer = io.BufferedWriter(CompressorIO(stream, codec=Codec.GZIP))
        writer.write(self.CONTENT)
        writer.close()
        self.assertEqual(gzip.decompress(stream.getvalue()), self.CONTENT)

    def test_pass_through(self):
        stream = io.BytesIO()
        writer = WriteIO(stream)
        writer.write(self.CONTENT)
        writer.close()
        self.assertEqual(stream.getvalue(), self.CONTENT)
        self.assertFalse(stream.closed)
