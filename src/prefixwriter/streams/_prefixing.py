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

"""Thread-safe writer that prepends a prefix to every line."""

from __future__ import annotations

import threading
from collections.abc import Buffer, Iterable
from typing import Any, Literal, cast, overload

from ..dbc import ensure
from ..errors import DownstreamWriteError
from ..logging import StructuredLogger, get_logger
from ._protocols import BYTE_NEWLINE, TEXT_NEWLINE, ByteSink, Flushable, TextSink
from ._segments import plan_emissions

__all__ = [
    "PrefixingWriter",
    "new",
]

logger: StructuredLogger = get_logger(__name__, context={"component": "prefix_writer"})

type Mode = Literal["bytes", "text"]


def _input_length(data: object) -> int:
    if isinstance(data, str | bytes):
        return len(data)
    return memoryview(cast(Buffer, data)).nbytes


def _returns_input_length(
    self: object,
    data: object,
    *,
    result: int | None = None,
    exception: BaseException | None = None,
) -> bool | tuple[bool, str]:
    if exception is not None:
        return True
    expected = _input_length(data)
    return result == expected, f"expected {expected}, got {result}"


class PrefixingWriter[S: (str, bytes)]:
    """Writer that starts every line it forwards to ``sink`` with ``prefix``.

    Writes are split on newlines. The prefix is emitted only in front of
    content that begins a line, so a line spread over several ``write`` calls
    is prefixed once, and empty lines stay empty. Line-start state carries over
    between calls.

    The type of ``prefix`` selects the mode: ``bytes`` (or any bytes-like
    object) for byte sinks, ``str`` for text sinks such as ``sys.stdout``.

    All writes hold a single lock, so concurrent callers never interleave
    inside one call. Each prefix, segment, and newline is handed to the sink as
    a separate ``write``; when the sink raises, the writer stops and raises
    :class:`~prefixwriter.errors.DownstreamWriteError` without rolling back
    what was already written.

    Example::

        writer = PrefixingWriter("[worker-1] ", sys.stdout)
        print("starting", file=writer)
        writer.write("step 1...")
        writer.write(" done\\n")
        # [worker-1] starting
        # [worker-1] step 1... done
    """

    __slots__ = ("__weakref__", "_at_line_start", "_lock", "_mode", "_prefix", "_sink")

    @overload
    def __init__(self: PrefixingWriter[str], prefix: str, sink: TextSink) -> None: ...

    @overload
    def __init__(
        self: PrefixingWriter[bytes], prefix: bytes | Buffer, sink: ByteSink
    ) -> None: ...

    def __init__(self, prefix: str | Buffer, sink: TextSink | ByteSink) -> None:
        if isinstance(prefix, str):
            self._mode: Mode = "text"
            self._prefix = cast(S, prefix)
        elif isinstance(prefix, Buffer):
            self._mode = "bytes"
            self._prefix = cast(S, bytes(prefix))
        else:
            msg = f"prefix must be str or bytes-like, not {type(prefix).__name__}"
            raise TypeError(msg)
        self._sink = sink
        self._lock = threading.Lock()
        self._at_line_start = True
        logger.debug(
            "Prefixing writer created.",
            event="prefix_writer.created",
            context={
                "prefix": self._prefix,
                "mode": self._mode,
                "sink_type": type(sink).__name__,
            },
        )

    @property
    def prefix(self) -> S:
        """Prefix emitted at the start of every non-empty line."""
        return self._prefix

    @property
    def sink(self) -> TextSink | ByteSink:
        """Downstream stream; the writer never opens or closes it."""
        return self._sink

    @property
    def mode(self) -> Mode:
        """``"bytes"`` or ``"text"``, chosen by the prefix type."""
        return self._mode

    @property
    def at_line_start(self) -> bool:
        """True when the next content written will be preceded by the prefix."""
        with self._lock:
            return self._at_line_start

    def writable(self) -> bool:
        """Return True - this is a writable stream."""
        return True

    @ensure(_returns_input_length)
    def write(self, data: S | Buffer) -> int:
        """Write ``data``, prefixing every line that starts within it.

        Args:
            data: ``str`` for text-mode writers, any bytes-like object for
                byte-mode writers.

        Returns:
            The length of ``data``; the whole input is always consumed.

        Raises:
            TypeError: If ``data`` does not match the writer's mode. Nothing
                is written in that case.
            DownstreamWriteError: If the sink raised. Output up to the failing
                piece has been written.
        """
        payload = self._coerce(data)
        try:
            with self._lock:
                self._emit(payload, offset=0)
        except DownstreamWriteError as error:
            self._log_failure(error)
            raise
        return len(payload)

    def writelines(self, lines: Iterable[S | Buffer]) -> int:
        """Write every item of ``lines`` as one uninterrupted batch.

        Like :meth:`io.IOBase.writelines`, no newlines are added. The lock is
        held for the whole batch so other callers cannot interleave between
        items. All items are type-checked before anything is written.

        Returns:
            Total length of the items written.

        Raises:
            DownstreamWriteError: If the sink raised. ``consumed`` counts input
                units across the whole batch.
        """
        payloads = [self._coerce(line) for line in lines]
        consumed = 0
        try:
            with self._lock:
                for payload in payloads:
                    self._emit(payload, offset=consumed)
                    consumed += len(payload)
        except DownstreamWriteError as error:
            self._log_failure(error)
            raise
        return consumed

    def flush(self) -> None:
        """Flush the sink when it supports flushing.

        Errors raised by the sink's ``flush`` propagate unchanged.
        """
        with self._lock:
            if isinstance(self._sink, Flushable):
                _ = self._sink.flush()

    def _coerce(self, data: object) -> S:
        if self._mode == "text":
            if not isinstance(data, str):
                msg = f"write() argument must be str, not {type(data).__name__}"
                raise TypeError(msg)
            return cast(S, data)
        if isinstance(data, str):
            msg = "a bytes-like object is required, not 'str'"
            raise TypeError(msg)
        if isinstance(data, bytes):
            return cast(S, data)
        if isinstance(data, Buffer):
            return cast(S, bytes(data))
        msg = f"a bytes-like object is required, not '{type(data).__name__}'"
        raise TypeError(msg)

    def _emit(self, payload: S, *, offset: int) -> None:
        """Hand ``payload`` to the sink piece by piece. Caller holds the lock."""
        newline = cast(S, TEXT_NEWLINE if self._mode == "text" else BYTE_NEWLINE)
        consumed = 0
        sink = cast(Any, self._sink)
        for emission in plan_emissions(
            payload,
            prefix=self._prefix,
            newline=newline,
            at_line_start=self._at_line_start,
        ):
            try:
                _ = sink.write(emission.chunk)
            except Exception as exc:
                msg = (
                    f"Sink write failed while emitting {emission.piece}: "
                    f"{type(exc).__name__}: {exc}"
                )
                raise DownstreamWriteError(
                    msg, consumed=offset + consumed, piece=emission.piece
                ) from exc
            self._at_line_start = emission.at_line_start
            consumed = emission.consumed

    def _log_failure(self, error: DownstreamWriteError) -> None:
        cause = error.__cause__
        logger.debug(
            "Downstream write failed.",
            event="prefix_writer.downstream_write_failed",
            context={
                "prefix": self._prefix,
                "piece": error.piece,
                "consumed": error.consumed,
                "error_type": type(cause).__name__ if cause is not None else None,
            },
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(prefix={self._prefix!r}, sink={self._sink!r})"


@overload
def new(prefix: str, sink: TextSink) -> PrefixingWriter[str]: ...


@overload
def new(prefix: bytes | Buffer, sink: ByteSink) -> PrefixingWriter[bytes]: ...


def new(
    prefix: str | Buffer, sink: TextSink | ByteSink
) -> PrefixingWriter[str] | PrefixingWriter[bytes]:
    """Return a writer that prepends ``prefix`` to every line written to ``sink``.

    The returned writer is itself a sink, so writers can be nested to build up
    compound prefixes::

        outer = new(b"[job] ", sys.stdout.buffer)
        inner = new(b"[step 2] ", outer)
        inner.write(b"hello\\n")  # [job] [step 2] hello
    """

    return PrefixingWriter(prefix, sink)  # pyright: ignore[reportCallIssue, reportArgumentType]
