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

"""Line segment splitting and emission planning.

These helpers are pure: they decide which pieces a prefixing writer hands to
its sink, in what order, and what the line-start state is after each piece.
The writer only executes the plan and records progress.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from ..dbc import ensure, require
from ..errors import Piece

__all__ = [
    "Emission",
    "plan_emissions",
    "split_segments",
]


def _rejoins_to_input(
    data: Any,  # noqa: ANN401
    newline: Any,  # noqa: ANN401
    *,
    result: list[Any] | None = None,
    exception: BaseException | None = None,
) -> bool:
    if exception is not None:
        return True
    return result is not None and newline.join(result) == data


@require(lambda data, newline: len(newline) == 1)
@ensure(_rejoins_to_input)
def split_segments[S: (str, bytes)](data: S, newline: S) -> list[S]:
    """Split ``data`` into the runs of content between newlines.

    Empty input yields a single empty segment. Input ending in a newline yields
    a trailing empty segment, and consecutive newlines yield empty segments
    between them::

        >>> split_segments(b"a\\n\\nb\\n", b"\\n")
        [b'a', b'', b'b', b'']
    """

    return data.split(newline)


@dataclass(frozen=True, slots=True)
class Emission[S: (str, bytes)]:
    """One ``write`` call a prefixing writer makes on its sink.

    ``consumed`` is the number of input units accounted for once this piece has
    been written, and ``at_line_start`` the writer's state at that point.
    """

    piece: Piece
    chunk: S
    consumed: int
    at_line_start: bool


def plan_emissions[S: (str, bytes)](
    data: S,
    *,
    prefix: S,
    newline: S,
    at_line_start: bool,
) -> Iterator[Emission[S]]:
    """Yield the sink writes needed to emit ``data`` with line prefixes.

    A prefix precedes a non-empty segment only when the writer sits at a line
    start. Every newline in ``data`` is written on its own and returns the
    writer to line start. Empty input yields nothing and leaves the state
    untouched.

    A written prefix already counts as the start of the line, so a caller that
    replays ``data[emission.consumed:]`` after a failed write never sees the
    prefix twice.
    """

    if not data:
        return

    segments = split_segments(data, newline)
    last = len(segments) - 1
    consumed = 0
    for index, segment in enumerate(segments):
        if segment:
            if at_line_start:
                yield Emission("prefix", prefix, consumed, at_line_start=False)
            consumed += len(segment)
            at_line_start = False
            yield Emission("segment", segment, consumed, at_line_start=False)
        if index < last:
            consumed += len(newline)
            at_line_start = True
            yield Emission("newline", newline, consumed, at_line_start=True)
