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

from __future__ import annotations

from collections.abc import Iterator

import pytest

import prefixwriter.dbc as dbc_module

pytest_plugins = ["tests.plugins.threadstress", "tests.helpers.sinks"]


@pytest.fixture(autouse=True)
def enforce_contracts(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test with contract checks on."""

    monkeypatch.delenv(dbc_module.DBC_ENV, raising=False)
    dbc_module.enable_dbc()
    yield
    dbc_module._forced_state = None
