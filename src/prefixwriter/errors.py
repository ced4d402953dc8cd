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

"""Base exception hierarchy for :mod:`prefixwriter`."""

from __future__ import annotations

from typing import Literal

type Piece = Literal["prefix", "segment", "newline"]


class PrefixWriterError(Exception):
    """Base class for all prefixwriter exceptions.

    Callers can catch every library-specific failure with a single handler
    while standard Python exceptions (``TypeError`` for mismatched data, for
    example) propagate normally.
    """


class DownstreamWriteError(PrefixWriterError, OSError):
    """Raised when the wrapped sink fails while a write is in progress.

    Each prefix, segment, and newline is handed to the sink as a separate
    ``write`` call. When one of those calls raises, the writer stops at once
    and raises this error with the sink's exception chained as ``__cause__``.
    Nothing already emitted is rolled back.

    Attributes:
        consumed: Number of input units (bytes in byte mode, characters in
            text mode) whose output reached the sink before the failure.
            Prefix bytes are never counted.
        piece: Which emission failed: ``"prefix"``, ``"segment"`` or
            ``"newline"``.

    Example:
        Resuming after a partial write::

            try:
                writer.write(payload)
            except DownstreamWriteError as e:
                logger.error("Sink failed after %d units: %s", e.consumed, e)
                remainder = payload[e.consumed :]

    Note:
        This exception also inherits from ``OSError`` so existing handlers for
        stream failures keep working.
    """

    def __init__(self, message: str, *, consumed: int, piece: Piece) -> None:
        super().__init__(message)
        self.consumed = consumed
        self.piece: Piece = piece


__all__ = [
    "DownstreamWriteError",
    "Piece",
    "PrefixWriterError",
]
