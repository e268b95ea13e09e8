# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
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

"""Pytest configuration and shared fixtures for loopmesh tests."""

import pytest
import torch

### Pytest Hooks ###


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "cuda: mark test as requiring CUDA (skipped if unavailable)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'cuda' if CUDA is not available."""
    if torch.cuda.is_available():
        return

    skip_cuda = pytest.mark.skip(reason="CUDA not available")
    for item in items:
        if "cuda" in item.keywords:
            item.add_marker(skip_cuda)


### Device Management ###


def get_available_devices() -> list[str]:
    """Return 'cpu' and, if available, 'cuda'."""
    devices = ["cpu"]
    if torch.cuda.is_available():
        devices.append("cuda")
    return devices


@pytest.fixture(params=get_available_devices())
def device(request) -> str:
    """Parametrize a test over every available compute device."""
    return request.param


### Reference Helpers ###


@pytest.fixture
def reference_edge_count():
    """Count distinct undirected edges with plain Python sets.

    Independent of the torch-based edge extraction used by the package.
    """

    def _count(cells: torch.Tensor) -> int:
        edges = set()
        for v1, v2, v3 in cells.tolist():
            for a, b in ((v1, v2), (v2, v3), (v3, v1)):
                edges.add(frozenset((a, b)))
        return len(edges)

    return _count
