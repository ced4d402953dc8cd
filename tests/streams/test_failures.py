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

"""Tests for sink failures during prefixed writes."""

from __future__ import annotations

import logging
import threading

import pytest

from prefixwriter import DownstreamWriteError, PrefixWriterError, new
from prefixwriter.streams import MemorySink
from tests.helpers import FailingSink


class TestDownstreamFailures:
    """The writer stops at the failing piece and reports progress."""

    def test_failure_on_prefix(self) -> None:
        """Failing on the very first prefix consumes nothing."""
        sink = FailingSink(fail_on={0})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError) as excinfo:
            writer.write(b"hello\n")

        error = excinfo.value
        assert error.piece == "prefix"
        assert error.consumed == 0
        assert isinstance(error.__cause__, BrokenPipeError)
        assert sink.getvalue() == b""
        assert writer.at_line_start

    def test_failure_on_segment_after_prefix(self) -> None:
        """A written prefix marks the line as started."""
        sink = FailingSink(fail_on={1})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError) as excinfo:
            writer.write(b"hello\n")

        assert excinfo.value.piece == "segment"
        assert excinfo.value.consumed == 0
        assert sink.getvalue() == b"> "
        assert not writer.at_line_start

    def test_failure_on_newline(self) -> None:
        """Content before the failing newline counts as consumed."""
        sink = FailingSink(fail_on={2})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError) as excinfo:
            writer.write(b"hello\nworld\n")

        assert excinfo.value.piece == "newline"
        assert excinfo.value.consumed == 5
        assert sink.getvalue() == b"> hello"
        assert not writer.at_line_start

    def test_failure_on_second_line(self) -> None:
        """Consumed counts whole lines that were emitted."""
        sink = FailingSink(fail_on={4})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError) as excinfo:
            writer.write(b"hello\nworld\n")

        assert excinfo.value.piece == "segment"
        assert excinfo.value.consumed == 6
        assert sink.getvalue() == b"> hello\n> "

    def test_replaying_remainder_reconstructs_output(self) -> None:
        """Writing ``data[consumed:]`` after a failure completes the output."""
        payload = b"alpha\nbeta\ngamma"
        expected = b"> alpha\n> beta\n> gamma"

        for failing_call in range(8):
            sink = FailingSink(fail_on={failing_call})
            writer = new(b"> ", sink)

            with pytest.raises(DownstreamWriteError) as excinfo:
                writer.write(payload)
            writer.write(payload[excinfo.value.consumed :])

            assert sink.getvalue() == expected, failing_call

    def test_writer_reusable_after_failure(self) -> None:
        """The lock is released when the sink raises."""
        sink = FailingSink(fail_on={0})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError):
            writer.write(b"lost\n")

        worker = threading.Thread(target=writer.write, args=(b"kept\n",))
        worker.start()
        worker.join(timeout=5.0)

        assert not worker.is_alive()
        assert sink.getvalue() == b"> kept\n"

    def test_closed_memory_sink(self) -> None:
        """A closed downstream stream surfaces as a downstream failure."""
        sink = MemorySink.for_bytes()
        writer = new(b"> ", sink)
        sink.close()

        with pytest.raises(DownstreamWriteError, match="closed") as excinfo:
            writer.write(b"x")

        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_error_hierarchy(self) -> None:
        """Downstream failures are library errors and OSErrors."""
        sink = FailingSink(fail_on={0, 1}, error=OSError("disk full"))
        writer = new(b"> ", sink)

        with pytest.raises(PrefixWriterError):
            writer.write(b"x")
        with pytest.raises(OSError, match="disk full"):
            writer.write(b"x")

    def test_writelines_reports_batch_progress(self) -> None:
        """consumed spans every item already written in the batch."""
        sink = FailingSink(fail_on={5})
        writer = new(b"> ", sink)

        with pytest.raises(DownstreamWriteError) as excinfo:
            writer.writelines([b"ab\n", b"cd\n"])

        # calls: "> ", "ab", "\n", "> ", "cd", "\n" <- fails
        assert excinfo.value.piece == "newline"
        assert excinfo.value.consumed == 5
        assert sink.getvalue() == b"> ab\n> cd"

    def test_base_exceptions_are_not_wrapped(self) -> None:
        """KeyboardInterrupt from the sink propagates unchanged."""
        sink = FailingSink(fail_on={0}, error=KeyboardInterrupt())  # type: ignore[arg-type]
        writer = new(b"> ", sink)

        with pytest.raises(KeyboardInterrupt):
            writer.write(b"x")

    def test_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Failures produce a structured debug record."""
        sink = FailingSink(fail_on={1})
        writer = new(b"> ", sink)

        with (
            caplog.at_level(logging.DEBUG, logger="prefixwriter"),
            pytest.raises(DownstreamWriteError),
        ):
            writer.write(b"hello\n")

        records = [
            record
            for record in caplog.records
            if getattr(record, "event", None)
            == "prefix_writer.downstream_write_failed"
        ]
        assert len(records) == 1
        context = records[0].context  # type: ignore[attr-defined]
        assert context["piece"] == "segment"
        assert context["consumed"] == 0
        assert context["error_type"] == "BrokenPipeError"
        assert context["component"] == "prefix_writer"
