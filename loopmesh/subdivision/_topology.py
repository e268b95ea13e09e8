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

"""Edge topology of triangle meshes for Loop subdivision.

Builds, once per subdivision step, the map from every undirected edge to the
"opposite" vertices of the triangles incident to it. An edge with one opposite
vertex is a boundary edge, an edge with two is an interior edge. Building the
map with a single ``torch.unique`` pass keeps the classification O(F log F)
instead of scanning every face for every edge.
"""

import torch

from loopmesh.subdivision._edge_registry import Edge, canonical_edge

# Local corner pairs of the three edges of a triangle (v1, v2, v3), in the order
# in which their midpoints are resolved: (v1, v2), (v2, v3), (v3, v1).
_TRIANGLE_EDGES = torch.tensor([[0, 1], [1, 2], [2, 0]], dtype=torch.int64)

# Local corner opposite to each of the edges above.
_TRIANGLE_OPPOSITE = torch.tensor([2, 0, 1], dtype=torch.int64)


def extract_candidate_edges(cells: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
    """List every (edge, opposite vertex) pair of every triangle.

    Parameters
    ----------
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).

    Returns
    -------
    candidate_edges : torch.Tensor
        Shape (3 * n_cells, 2). Row ``3 * i + k`` is edge ``k`` of cell ``i``
        with its endpoints sorted ascending. Duplicates remain for shared
        edges.
    opposite_vertices : torch.Tensor
        Shape (3 * n_cells,). The vertex of the same cell that is not on the
        candidate edge.
    """
    edge_corners = _TRIANGLE_EDGES.to(cells.device)
    opposite_corners = _TRIANGLE_OPPOSITE.to(cells.device)

    candidate_edges = cells[:, edge_corners].reshape(-1, 2)  # (3 * n_cells, 2)
    candidate_edges, _ = torch.sort(candidate_edges, dim=-1)
    opposite_vertices = cells[:, opposite_corners].reshape(-1)
    return candidate_edges, opposite_vertices


def extract_unique_edges(cells: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
    """Deduplicate the edges of a triangle mesh.

    Parameters
    ----------
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).

    Returns
    -------
    unique_edges : torch.Tensor
        Sorted unique edges, shape (n_edges, 2), endpoints ascending.
    counts : torch.Tensor
        Number of cells incident to each unique edge, shape (n_edges,).

    Examples
    --------
    >>> import torch
    >>> cells = torch.tensor([[0, 1, 2], [0, 2, 3]])
    >>> edges, counts = extract_unique_edges(cells)
    >>> edges.shape[0], int(counts.max())
    (5, 2)
    """
    if cells.shape[0] == 0:
        return (
            torch.empty((0, 2), dtype=cells.dtype, device=cells.device),
            torch.empty((0,), dtype=torch.int64, device=cells.device),
        )
    candidate_edges, _ = extract_candidate_edges(cells)
    unique_edges, counts = torch.unique(candidate_edges, dim=0, return_counts=True)
    return unique_edges, counts


class EdgeAdjacency:
    """Undirected edges of a triangle mesh with the apexes of their faces.

    For each unique edge, stores up to two opposite vertices: the vertex of
    each incident triangle that is not on the edge, in cell order. Edges shared
    by more than two triangles keep the apexes of the first two; the extra
    triangles are only reflected in :attr:`counts`.

    Parameters
    ----------
    edges : torch.Tensor
        Unique edges, shape (n_edges, 2), endpoints ascending.
    opposite : torch.Tensor
        Opposite vertices, shape (n_edges, 2). The second column is ``-1``
        for boundary edges.
    counts : torch.Tensor
        Number of incident triangles per edge, shape (n_edges,).
    """

    def __init__(
        self,
        edges: torch.Tensor,
        opposite: torch.Tensor,
        counts: torch.Tensor,
    ) -> None:
        self.edges = edges
        self.opposite = opposite
        self.counts = counts

        # Host-side lookup for the per-edge resolution loop
        self._rows: dict[Edge, int] = {
            (a, b): row for row, (a, b) in enumerate(edges.tolist())
        }
        self._opposite_rows: list[list[int]] = opposite.tolist()

    @property
    def n_edges(self) -> int:
        return self.edges.shape[0]

    @property
    def boundary_mask(self) -> torch.Tensor:
        """Boolean mask over :attr:`edges`, True for edges with one incident cell."""
        return self.counts == 1

    @property
    def non_manifold_mask(self) -> torch.Tensor:
        """Boolean mask over :attr:`edges`, True for edges with 3+ incident cells."""
        return self.counts > 2

    def is_boundary(self, edge: tuple[int, int]) -> bool:
        """Return True if ``edge`` belongs to exactly one triangle."""
        return len(self.opposite_vertices(edge)) == 1

    def opposite_vertices(self, edge: tuple[int, int]) -> tuple[int, ...]:
        """Return the apex vertices of the triangles incident to ``edge``.

        Returns a 1-tuple for boundary edges and a 2-tuple otherwise.

        Raises
        ------
        KeyError
            If ``edge`` is not an edge of any triangle of the mesh.
        """
        key = canonical_edge(edge)
        try:
            first, second = self._opposite_rows[self._rows[key]]
        except KeyError:
            raise KeyError(f"Edge {key} does not belong to any cell.") from None
        return (first,) if second < 0 else (first, second)

    def find_rows(self, query_edges: torch.Tensor) -> torch.Tensor:
        """Locate edges in :attr:`edges` with a hash lookup.

        Parameters
        ----------
        query_edges : torch.Tensor
            Edges to find, shape (n_query, 2), endpoints in either order.

        Returns
        -------
        torch.Tensor
            Row of each query edge in :attr:`edges`, shape (n_query,).

        Raises
        ------
        KeyError
            If a query edge does not belong to any cell.
        """
        device = self.edges.device
        if len(query_edges) == 0:
            return torch.empty((0,), dtype=torch.int64, device=device)

        sorted_query, _ = torch.sort(
            query_edges.to(device=device, dtype=self.edges.dtype), dim=-1
        )
        if self.n_edges == 0:
            raise KeyError(
                f"Edge {tuple(sorted_query[0].tolist())} does not belong to any cell."
            )

        ### Integer hash v0 * (max_vertex + 1) + v1; ascending since edges are sorted
        max_vertex = max(int(self.edges.max()), int(sorted_query.max())) + 1
        reference_hash = self.edges[:, 0] * max_vertex + self.edges[:, 1]
        query_hash = sorted_query[:, 0] * max_vertex + sorted_query[:, 1]

        rows = torch.searchsorted(reference_hash, query_hash).clamp(
            max=self.n_edges - 1
        )
        matches = reference_hash[rows] == query_hash
        if not torch.all(matches):
            missing = sorted_query[~matches][0].tolist()
            raise KeyError(f"Edge {tuple(missing)} does not belong to any cell.")
        return rows

    def __len__(self) -> int:
        return self.n_edges

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_edges={self.n_edges}, "
            f"n_boundary={int(self.boundary_mask.sum())}, "
            f"n_non_manifold={int(self.non_manifold_mask.sum())})"
        )


def build_edge_adjacency(cells: torch.Tensor) -> EdgeAdjacency:
    """Build the edge -> opposite-vertex map of a triangle mesh.

    Parameters
    ----------
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).

    Returns
    -------
    EdgeAdjacency
        Adjacency over all unique edges of ``cells``.

    Examples
    --------
    >>> import torch
    >>> cells = torch.tensor([[0, 1, 2], [2, 1, 3]])
    >>> adjacency = build_edge_adjacency(cells)
    >>> adjacency.opposite_vertices((1, 2))
    (0, 3)
    >>> adjacency.opposite_vertices((0, 1))
    (2,)
    """
    device = cells.device

    ### Handle empty mesh
    if cells.shape[0] == 0:
        return EdgeAdjacency(
            edges=torch.empty((0, 2), dtype=torch.int64, device=device),
            opposite=torch.empty((0, 2), dtype=torch.int64, device=device),
            counts=torch.empty((0,), dtype=torch.int64, device=device),
        )

    candidate_edges, opposite_vertices = extract_candidate_edges(cells.long())

    ### Deduplicate, remembering which unique edge each candidate maps to
    unique_edges, inverse, counts = torch.unique(
        candidate_edges,
        dim=0,
        return_inverse=True,
        return_counts=True,
    )

    ### Group candidates by edge; the stable sort keeps cell order within a group
    order = torch.sort(inverse, stable=True).indices
    grouped_opposite = opposite_vertices[order]
    group_starts = torch.cumsum(counts, dim=0) - counts

    ### First apex for every edge, second apex where a second cell exists
    opposite = torch.full(
        (len(unique_edges), 2), -1, dtype=torch.int64, device=device
    )
    opposite[:, 0] = grouped_opposite[group_starts]
    has_second = counts >= 2
    opposite[has_second, 1] = grouped_opposite[group_starts[has_second] + 1]

    return EdgeAdjacency(edges=unique_edges, opposite=opposite, counts=counts)


def split_triangle(
    v1: int, v2: int, v3: int, a: int, b: int, c: int
) -> list[tuple[int, int, int]]:
    """Return the four children of triangle (v1, v2, v3).

    ``a``, ``b`` and ``c`` are the new vertices on edges (v1, v2), (v2, v3) and
    (v3, v1). All children keep the winding of the parent::

                   v2
                   /\\
                  /  \\
                 a----b
                / \\  / \\
               /   \\/   \\
             v1----c----v3
    """
    return [(v1, a, c), (a, b, c), (c, b, v3), (a, v2, b)]
