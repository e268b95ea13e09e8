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

"""Tests for triangle interior angles."""

import math

import pytest
import torch

from loopmesh.geometry import compute_triangle_angles
from loopmesh.primitives.surfaces import icosahedron_surface


class TestTriangleAngles:
    def test_right_triangle(self):
        points = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        angles = compute_triangle_angles(points, torch.tensor([[0, 1, 2]]))

        expected = torch.tensor([[math.pi / 2, math.pi / 4, math.pi / 4]])
        torch.testing.assert_close(angles, expected)

    def test_column_k_is_angle_at_cells_k(self):
        points = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        angles = compute_triangle_angles(points, torch.tensor([[1, 2, 0]]))

        assert angles[0, 2].item() == pytest.approx(math.pi / 2)

    @pytest.mark.parametrize("dtype", [torch.float32, torch.float64])
    def test_angles_sum_to_pi(self, dtype):
        mesh = icosahedron_surface.load(dtype=dtype)
        angles = compute_triangle_angles(mesh.points, mesh.cells)

        assert angles.dtype == dtype
        torch.testing.assert_close(
            angles.sum(dim=-1), torch.full((mesh.n_cells,), math.pi, dtype=dtype)
        )

    def test_degenerate_triangle_has_finite_angles(self):
        points = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        angles = compute_triangle_angles(points, torch.tensor([[0, 1, 2]]))

        assert torch.all(torch.isfinite(angles))
        assert angles[0, 1].item() == pytest.approx(math.pi)

    def test_zero_length_edge_gives_zero_angle(self):
        points = torch.tensor([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        angles = compute_triangle_angles(points, torch.tensor([[0, 1, 2]]))

        assert torch.all(torch.isfinite(angles))
        assert angles[0, 0].item() == 0.0
