"""Contains utility classes shared by the builder and writer."""

import collections.abc
import io
import tempfile
import typing


class RowSpool:
    """
    Tab-delimited text rows spooled to a temporary file.

    Rows can be appended after the spool has been read; each read starts
    from the first row.
    """

    __slots__ = ("_file", "_count")

    def __init__(self) -> None:
        self._file: typing.IO[str] = tempfile.TemporaryFile(
            "w+", encoding="utf-8", newline="\n"
        )
        self._count = 0

    def append(self, fields: collections.abc.Iterable[object]) -> None:
        self._file.write("\t".join(str(field) for field in fields))
        self._file.write("\n")
        self._count += 1

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> collections.abc.Iterator[str]:
        self._file.flush()
        self._file.seek(0)
        try:
            for _ in range(self._count):
                yield self._file.readline().rstrip("\n")
        finally:
            self._file.seek(0, io.SEEK_END)

    def copy_to(self, stream: typing.TextIO) -> None:
        """Write all rows to stream."""
        for line in self:
            stream.write(line)
            stream.write("\n")

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "RowSpool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
