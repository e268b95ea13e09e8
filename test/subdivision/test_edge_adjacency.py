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

"""Tests for edge extraction and the edge -> opposite-vertex adjacency."""

import pytest
import torch

from loopmesh.primitives.surfaces import icosahedron_surface, plane
from loopmesh.subdivision._topology import (
    build_edge_adjacency,
    extract_candidate_edges,
    extract_unique_edges,
    split_triangle,
)


class TestExtractEdges:
    def test_candidate_edges_follow_resolution_order(self):
        cells = torch.tensor([[4, 2, 7]])
        candidates, opposite = extract_candidate_edges(cells)

        # (v1, v2), (v2, v3), (v3, v1), endpoints sorted
        assert candidates.tolist() == [[2, 4], [2, 7], [4, 7]]
        assert opposite.tolist() == [7, 4, 2]

    def test_unique_edges_of_quad(self):
        cells = torch.tensor([[0, 1, 2], [0, 2, 3]])
        edges, counts = extract_unique_edges(cells)

        assert edges.tolist() == [[0, 1], [0, 2], [0, 3], [1, 2], [2, 3]]
        assert counts.tolist() == [1, 2, 1, 1, 1]

    def test_empty_cells(self):
        edges, counts = extract_unique_edges(torch.empty((0, 3), dtype=torch.int64))
        assert edges.shape == (0, 2)
        assert counts.shape == (0,)

    def test_unique_edges_match_reference(self, reference_edge_count):
        mesh = plane.load(subdivisions=5)
        edges, _ = extract_unique_edges(mesh.cells)
        assert len(edges) == reference_edge_count(mesh.cells)


class TestEdgeAdjacency:
    """Boundary/interior classification through opposite vertices."""

    def test_two_triangles(self):
        cells = torch.tensor([[0, 1, 2], [0, 2, 3]])
        adjacency = build_edge_adjacency(cells)

        assert adjacency.n_edges == 5
        assert adjacency.opposite_vertices((0, 2)) == (1, 3)
        assert adjacency.opposite_vertices((2, 0)) == (1, 3)
        assert adjacency.opposite_vertices((0, 1)) == (2,)
        assert adjacency.opposite_vertices((3, 2)) == (0,)
        assert not adjacency.is_boundary((0, 2))
        assert adjacency.is_boundary((1, 2))
        assert int(adjacency.boundary_mask.sum()) == 4

    def test_closed_surface_has_no_boundary(self):
        mesh = icosahedron_surface.load()
        adjacency = build_edge_adjacency(mesh.cells)

        assert adjacency.n_edges == 30
        assert not adjacency.boundary_mask.any()
        assert torch.all(adjacency.counts == 2)

    def test_opposite_vertices_are_cell_apexes(self):
        mesh = icosahedron_surface.load()
        adjacency = build_edge_adjacency(mesh.cells)

        cell_sets = [set(cell) for cell in mesh.cells.tolist()]
        for (a, b), (o0, o1) in zip(
            adjacency.edges.tolist(), adjacency.opposite.tolist()
        ):
            assert {a, b, o0} in cell_sets
            assert {a, b, o1} in cell_sets
            assert o0 != o1

    def test_non_manifold_edge_keeps_first_two_cells(self):
        # Three triangles hinged on edge (0, 1)
        cells = torch.tensor([[0, 1, 2], [1, 0, 3], [0, 1, 4]])
        adjacency = build_edge_adjacency(cells)

        assert adjacency.opposite_vertices((0, 1)) == (2, 3)
        assert int(adjacency.non_manifold_mask.sum()) == 1

    def test_unknown_edge_raises(self):
        adjacency = build_edge_adjacency(torch.tensor([[0, 1, 2]]))
        with pytest.raises(KeyError):
            adjacency.opposite_vertices((0, 5))

    def test_empty_mesh(self):
        adjacency = build_edge_adjacency(torch.empty((0, 3), dtype=torch.int64))
        assert len(adjacency) == 0

    def test_find_rows(self):
        mesh = plane.load(subdivisions=3)
        adjacency = build_edge_adjacency(mesh.cells)
        shuffled = adjacency.edges[torch.randperm(adjacency.n_edges)]

        rows = adjacency.find_rows(shuffled.flip(dims=[1]))

        torch.testing.assert_close(adjacency.edges[rows], shuffled)

    def test_find_rows_unknown_edge_raises(self):
        adjacency = build_edge_adjacency(torch.tensor([[0, 1, 2]]))
        with pytest.raises(KeyError, match=r"\(0, 5\)"):
            adjacency.find_rows(torch.tensor([[1, 2], [5, 0]]))

    def test_find_rows_on_empty_adjacency(self):
        adjacency = build_edge_adjacency(torch.empty((0, 3), dtype=torch.int64))
        assert adjacency.find_rows(torch.empty((0, 2), dtype=torch.int64)).numel() == 0
        with pytest.raises(KeyError):
            adjacency.find_rows(torch.tensor([[0, 1]]))


class TestSplitTriangle:
    def test_children_keep_parent_winding(self):
        children = split_triangle(0, 1, 2, 3, 4, 5)
        assert children == [(0, 3, 5), (3, 4, 5), (5, 4, 2), (3, 1, 4)]
