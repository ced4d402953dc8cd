# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Sink protocol definitions for prefixing writers.

A sink is anything with a ``write`` method. Files opened in binary mode,
sockets wrapped with ``makefile("wb")``, ``io.BytesIO`` and another
``PrefixingWriter`` all qualify as :class:`ByteSink`; ``sys.stdout`` and
``io.StringIO`` qualify as :class:`TextSink`.
"""

from __future__ import annotations

from collections.abc import Buffer
from typing import Final, Protocol, runtime_checkable

__all__ = [
    "BYTE_NEWLINE",
    "TEXT_NEWLINE",
    "ByteSink",
    "Flushable",
    "TextSink",
]

#: Line separator used by byte-mode writers.
BYTE_NEWLINE: Final[bytes] = b"\n"

#: Line separator used by text-mode writers.
TEXT_NEWLINE: Final[str] = "\n"


@runtime_checkable
class ByteSink(Protocol):
    """Writable byte stream.

    The return value of ``write`` is ignored by prefixing writers; any
    exception it raises is reported as a downstream write failure.
    """

    def write(self, data: Buffer, /) -> object:
        """Write ``data`` to the stream."""
        ...


@runtime_checkable
class TextSink(Protocol):
    """Writable text stream."""

    def write(self, data: str, /) -> object:
        """Write ``data`` to the stream."""
        ...


@runtime_checkable
class Flushable(Protocol):
    """Stream that can push buffered output downstream."""

    def flush(self) -> object:
        """Flush buffered output."""
        ...
