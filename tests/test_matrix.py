"""
Tests for the 3x3 matrix algebra helpers.

Run with: python -m pytest tests/test_matrix.py -v
"""

import numpy as np
import pytest

from quadwarp.errors import SingularMatrixError
from quadwarp.linalg.matrix import (
    adjugate,
    affine_parameters,
    as_matrix,
    determinant,
    from_homogeneous,
    identity,
    inverse,
    is_scalar_multiple,
    multiply,
    normalize,
    to_homogeneous,
    to_matrix4x4,
    transform_points,
    transpose,
)


@pytest.fixture
def general_matrix() -> np.ndarray:
    return np.array([[2.0, 0.0, 1.0], [1.0, 3.0, 2.0], [1.0, 1.0, 2.0]])


class TestBasicOperations:

    def test_multiply_matches_numpy(self, general_matrix):
        other = np.arange(9, dtype=float).reshape(3, 3)
        np.testing.assert_allclose(multiply(general_matrix, other), general_matrix @ other)

    def test_multiply_vector(self, general_matrix):
        v = np.array([1.0, 2.0, 1.0])
        result = multiply(general_matrix, v)
        assert result.shape == (3,)
        np.testing.assert_allclose(result, [3.0, 9.0, 5.0])

    def test_multiply_rejects_wrong_shapes(self):
        with pytest.raises(ValueError):
            multiply(np.eye(2), np.eye(2))
        with pytest.raises(ValueError):
            multiply(np.eye(3), np.ones(4))

    def test_transpose(self, general_matrix):
        np.testing.assert_array_equal(transpose(general_matrix), general_matrix.T)

    def test_determinant_matches_numpy(self, general_matrix):
        assert determinant(general_matrix) == pytest.approx(np.linalg.det(general_matrix))

    def test_adjugate_times_matrix_is_det_identity(self, general_matrix):
        det = determinant(general_matrix)
        np.testing.assert_allclose(adjugate(general_matrix) @ general_matrix,
                                   det * np.eye(3), atol=1e-12)

    def test_results_are_read_only(self, general_matrix):
        result = inverse(general_matrix)
        with pytest.raises(ValueError):
            result[0, 0] = 1.0

    def test_as_matrix_rejects_non_finite(self):
        with pytest.raises(ValueError):
            as_matrix([[np.nan, 0, 0], [0, 1, 0], [0, 0, 1]])
        with pytest.raises(ValueError):
            as_matrix(np.eye(4))


class TestInverse:

    def test_inverse_round_trip(self, general_matrix):
        np.testing.assert_allclose(multiply(general_matrix, inverse(general_matrix)),
                                   np.eye(3), atol=1e-12)

    def test_inverse_of_identity(self):
        np.testing.assert_array_equal(inverse(identity()), np.eye(3))

    def test_singular_matrix_raises(self):
        singular = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [0.0, 1.0, 1.0]])
        with pytest.raises(SingularMatrixError):
            inverse(singular)

    def test_near_singular_below_tolerance_raises(self):
        m = np.diag([1.0, 1.0, 1e-8])
        with pytest.raises(SingularMatrixError):
            inverse(m)

    def test_custom_tolerance(self):
        m = np.diag([1.0, 1.0, 1e-8])
        np.testing.assert_allclose(inverse(m, tolerance=1e-12), np.diag([1.0, 1.0, 1e8]))


class TestHomogeneous:

    def test_to_and_from_homogeneous(self):
        pts = np.array([[1.0, 2.0], [3.0, 4.0]])
        homog = to_homogeneous(pts)
        np.testing.assert_array_equal(homog, [[1.0, 2.0, 1.0], [3.0, 4.0, 1.0]])
        np.testing.assert_array_equal(from_homogeneous(homog * 2.0), pts)

    def test_point_at_infinity_is_not_an_error(self):
        result = from_homogeneous([1.0, -1.0, 0.0])
        assert np.isposinf(result[0])
        assert np.isneginf(result[1])

    def test_transform_points_translation(self):
        translate = np.array([[1.0, 0.0, 5.0], [0.0, 1.0, -2.0], [0.0, 0.0, 1.0]])
        np.testing.assert_allclose(transform_points(translate, [[0.0, 0.0], [1.0, 1.0]]),
                                   [[5.0, -2.0], [6.0, -1.0]])


class TestScaleComparison:

    def test_normalize_removes_scale_and_sign(self, general_matrix):
        np.testing.assert_allclose(normalize(general_matrix), normalize(-3.5 * general_matrix))

    def test_is_scalar_multiple(self, general_matrix):
        assert is_scalar_multiple(general_matrix, 0.25 * general_matrix)
        assert not is_scalar_multiple(general_matrix, np.eye(3))

    def test_normalize_zero_matrix_raises(self):
        with pytest.raises(ValueError):
            normalize(np.zeros((3, 3)))


class TestExport:

    def test_matrix4x4_acts_like_homography(self, general_matrix):
        lifted = to_matrix4x4(general_matrix)
        x, y, z = 2.0, 3.0, 7.0
        v4 = lifted @ np.array([x, y, z, 1.0])
        v3 = general_matrix @ np.array([x, y, 1.0])
        np.testing.assert_allclose(v4[[0, 1, 3]], v3)
        assert v4[2] == pytest.approx(z)

    def test_matrix4x4_row_vectors_is_transpose(self, general_matrix):
        np.testing.assert_array_equal(to_matrix4x4(general_matrix, row_vectors=True),
                                      to_matrix4x4(general_matrix).T)

    def test_affine_parameters(self):
        m = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [0.0, 0.0, 1.0]])
        a, b, c, d, tx, ty = affine_parameters(m)
        assert (a, b, c, d, tx, ty) == (1.0, 4.0, 2.0, 5.0, 3.0, 6.0)

    def test_affine_parameters_rejects_projective(self, general_matrix):
        with pytest.raises(ValueError):
            affine_parameters(general_matrix)
