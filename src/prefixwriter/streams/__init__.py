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

"""Line-prefixing stream writers.

- **Writer**: :class:`PrefixingWriter` and the :func:`new` constructor
- **Sinks**: the :class:`ByteSink` / :class:`TextSink` protocols and the
  recording :class:`MemorySink`
- **Planning**: :func:`split_segments` and :func:`plan_emissions`, the pure
  logic deciding what reaches the sink

Example::

    import sys

    from prefixwriter.streams import new

    out = new("[build] ", sys.stdout)
    out.write("compiling\\nlinking")
    out.write("... ok\\n")
    # [build] compiling
    # [build] linking... ok
"""

from __future__ import annotations

from ._memory import MemorySink
from ._prefixing import PrefixingWriter, new
from ._protocols import BYTE_NEWLINE, TEXT_NEWLINE, ByteSink, Flushable, TextSink
from ._segments import Emission, plan_emissions, split_segments

__all__ = [
    "BYTE_NEWLINE",
    "TEXT_NEWLINE",
    "ByteSink",
    "Emission",
    "Flushable",
    "MemorySink",
    "PrefixingWriter",
    "TextSink",
    "new",
    "plan_emissions",
    "split_segments",
]
