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

"""Registry of edge midpoint vertices created during one subdivision step.

Each undirected edge of the input mesh receives exactly one new vertex. The
first face that touches the edge creates it; the second face sharing the edge
must reuse the same index, otherwise the refined mesh would have duplicated
vertices and cracks along that edge.
"""

from collections.abc import Iterator

import torch

Edge = tuple[int, int]


def canonical_edge(edge: tuple[int, int]) -> Edge:
    """Return the order-independent key of an edge, ``(min, max)``.

    Examples
    --------
    >>> canonical_edge((7, 2))
    (2, 7)
    """
    a, b = int(edge[0]), int(edge[1])
    return (a, b) if a <= b else (b, a)


class EdgeRegistry:
    """Mapping from undirected edges to the index of their midpoint vertex.

    Edges are canonicalized on every access, so ``(a, b)`` and ``(b, a)`` refer
    to the same entry. Entries are kept in insertion order, which is the order
    in which midpoint vertices are appended to the output vertex list.

    Examples
    --------
    >>> registry = EdgeRegistry()
    >>> registry.add((4, 1), 10)
    >>> registry.contains((1, 4))
    True
    >>> registry.get_index((1, 4))
    10
    """

    def __init__(self) -> None:
        self._indices: dict[Edge, int] = {}

    def contains(self, edge: tuple[int, int]) -> bool:
        """Return True if a midpoint vertex has been registered for ``edge``."""
        return canonical_edge(edge) in self._indices

    def add(self, edge: tuple[int, int], index: int) -> None:
        """Register ``index`` as the midpoint vertex of ``edge``.

        Callers check :meth:`contains` first. Registering the same edge twice
        replaces the earlier index.
        """
        self._indices[canonical_edge(edge)] = int(index)

    def get_index(self, edge: tuple[int, int]) -> int:
        """Return the midpoint vertex index registered for ``edge``.

        Raises
        ------
        KeyError
            If no midpoint has been registered for the edge.
        """
        key = canonical_edge(edge)
        try:
            return self._indices[key]
        except KeyError:
            raise KeyError(f"No midpoint vertex registered for edge {key}.") from None

    def edges(self, device: torch.device | str = "cpu") -> torch.Tensor:
        """Return the registered edges in insertion order, shape (n_edges, 2)."""
        if not self._indices:
            return torch.empty((0, 2), dtype=torch.int64, device=device)
        return torch.tensor(list(self._indices), dtype=torch.int64, device=device)

    def __contains__(self, edge: object) -> bool:
        return isinstance(edge, tuple) and len(edge) == 2 and self.contains(edge)

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._indices)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_edges={len(self)})"
