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

"""Tests for the edge -> midpoint vertex registry."""

import pytest
import torch

from loopmesh.subdivision import EdgeRegistry, canonical_edge


class TestCanonicalEdge:
    def test_orders_endpoints(self):
        assert canonical_edge((5, 2)) == (2, 5)
        assert canonical_edge((2, 5)) == (2, 5)

    def test_accepts_tensor_scalars(self):
        edge = torch.tensor([3, 1])
        assert canonical_edge((edge[0], edge[1])) == (1, 3)


class TestEdgeRegistry:
    """Order-independent lookup and registration of midpoint vertices."""

    def test_empty_registry(self):
        registry = EdgeRegistry()
        assert len(registry) == 0
        assert not registry.contains((0, 1))
        assert registry.edges().shape == (0, 2)

    def test_contains_is_order_independent(self):
        registry = EdgeRegistry()
        registry.add((3, 7), 12)

        assert registry.contains((3, 7))
        assert registry.contains((7, 3))
        assert (7, 3) in registry
        assert not registry.contains((3, 8))

    def test_get_index_is_order_independent(self):
        registry = EdgeRegistry()
        registry.add((9, 4), 20)

        assert registry.get_index((4, 9)) == 20
        assert registry.get_index((9, 4)) == 20

    def test_get_index_of_unregistered_edge_raises(self):
        registry = EdgeRegistry()
        registry.add((0, 1), 3)

        with pytest.raises(KeyError, match=r"\(1, 2\)"):
            registry.get_index((2, 1))

    def test_second_add_overwrites(self):
        registry = EdgeRegistry()
        registry.add((0, 1), 3)
        registry.add((1, 0), 4)

        assert len(registry) == 1
        assert registry.get_index((0, 1)) == 4

    def test_edges_in_insertion_order(self):
        registry = EdgeRegistry()
        registry.add((1, 0), 3)
        registry.add((2, 1), 4)
        registry.add((0, 2), 5)

        assert registry.edges().tolist() == [[0, 1], [1, 2], [0, 2]]
        assert list(registry) == [(0, 1), (1, 2), (0, 2)]

    def test_non_edge_membership(self):
        registry = EdgeRegistry()
        registry.add((0, 1), 3)
        assert "0-1" not in registry
        assert (0, 1, 2) not in registry
