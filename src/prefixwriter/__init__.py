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

"""Prefix every line written to a shared stream.

Wrap any writable stream so each line written through the wrapper starts with
a fixed tag. Several producers can share one sink, each with its own tag::

    from prefixwriter import new

    api = new(b"[api] ", log_file)
    db = new(b"[db]  ", log_file)
"""

from __future__ import annotations

from .errors import DownstreamWriteError, PrefixWriterError
from .logging import configure_logging, get_logger
from .streams import ByteSink, MemorySink, PrefixingWriter, TextSink, new

__all__ = [
    "ByteSink",
    "DownstreamWriteError",
    "MemorySink",
    "PrefixWriterError",
    "PrefixingWriter",
    "TextSink",
    "configure_logging",
    "get_logger",
    "new",
]
