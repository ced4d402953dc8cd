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

"""In-memory sink that records every write call.

Useful for capturing prefixed output in tests and for inspecting exactly how a
writer split its input into sink calls.
"""

from __future__ import annotations

import threading
from collections.abc import Buffer
from dataclasses import dataclass, field
from typing import Self

__all__ = [
    "MemorySink",
]


@dataclass(slots=True)
class MemorySink[S: (str, bytes)]:
    """Sink that keeps each ``write`` call as a separate chunk.

    Create one with :meth:`for_bytes` or :meth:`for_text`. Writing after
    :meth:`close` raises ``ValueError`` the way a closed file does.

    Example::

        sink = MemorySink.for_bytes()
        writer = PrefixingWriter(b"[a] ", sink)
        writer.write(b"one\\ntwo")
        assert sink.getvalue() == b"[a] one\\n[a] two"
        assert sink.calls == (b"[a] ", b"one", b"\\n", b"[a] ", b"two")
    """

    _empty: S
    _calls: list[S] = field(default_factory=list, init=False, repr=False)
    _flushes: int = field(default=0, init=False)
    _closed: bool = field(default=False, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def for_bytes(cls) -> MemorySink[bytes]:
        """Create a sink accepting bytes-like data."""
        return MemorySink(b"")

    @classmethod
    def for_text(cls) -> MemorySink[str]:
        """Create a sink accepting ``str`` data."""
        return MemorySink("")

    @property
    def calls(self) -> tuple[S, ...]:
        """Every chunk received, one entry per ``write`` call."""
        with self._lock:
            return tuple(self._calls)

    @property
    def flushes(self) -> int:
        """Number of times :meth:`flush` was called."""
        return self._flushes

    @property
    def closed(self) -> bool:
        """True if the sink has been closed."""
        return self._closed

    def _check_closed(self) -> None:
        """Raise ValueError if closed."""
        if self._closed:
            msg = "I/O operation on closed file"
            raise ValueError(msg)

    def write(self, data: S | Buffer) -> int:
        """Record ``data`` and return its length."""
        self._check_closed()
        if isinstance(self._empty, str):
            if not isinstance(data, str):
                msg = f"write() argument must be str, not {type(data).__name__}"
                raise TypeError(msg)
            chunk = data
        else:
            if isinstance(data, str):
                msg = "a bytes-like object is required, not 'str'"
                raise TypeError(msg)
            chunk = bytes(data)
        with self._lock:
            self._calls.append(chunk)  # pyright: ignore[reportArgumentType]
        return len(chunk)

    def flush(self) -> None:
        """Count the flush; there is nothing buffered to push."""
        self._check_closed()
        self._flushes += 1

    def getvalue(self) -> S:
        """Return everything written so far as one value.

        Raises:
            ValueError: If the sink has been closed.
        """
        self._check_closed()
        with self._lock:
            return self._empty.join(self._calls)

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context manager."""
        self.close()

    def close(self) -> None:
        """Close the sink and drop recorded chunks."""
        if not self._closed:
            self._closed = True
            with self._lock:
                self._calls.clear()
