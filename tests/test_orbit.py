"""Tests for perturbzoom/orbit.py: reference orbit generation and truncation."""

import logging
from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from perturbzoom.errors import InvalidDepth
from perturbzoom.numeric import HighPrecisionComplex
from perturbzoom.orbit import ORBIT_BOUND, Orbit, compute_reference_orbit


def _center(re, im):
    return HighPrecisionComplex.from_strings(re, im)


class TestBoundedReference:

    def test_origin_never_truncates(self):
        orbit = compute_reference_orbit(_center("0", "0"), 1000)
        assert len(orbit) == 1000
        assert orbit.points.shape == (1001,)
        assert not orbit.truncated
        assert orbit.escape_step is None
        assert np.all(orbit.points == 0)

    def test_values_are_doubled_iterates(self):
        orbit = compute_reference_orbit(_center("-1", "0"), 4)
        # z: 0, -1, 0, -1, 0
        assert list(orbit.points) == [0, -2, 0, -2, 0]

    def test_points_are_read_only(self):
        orbit = compute_reference_orbit(_center("0", "0"), 5)
        with pytest.raises(ValueError):
            orbit.points[0] = 1


class TestTruncation:

    def test_escaping_reference(self):
        orbit = compute_reference_orbit(_center("2", "0"), 1000)
        # z: 0, 2, 6, 38, 1446 -> doubled 2892 breaks the bound
        assert list(orbit.points) == [0, 4, 12, 76, 2892]
        assert orbit.truncated
        assert len(orbit) == 4
        assert orbit.escape_step == 4

    def test_depth_reached_before_bound(self):
        orbit = compute_reference_orbit(_center("2", "0"), 3)
        assert list(orbit.points) == [0, 4, 12, 76]
        assert not orbit.truncated
        assert len(orbit) == 3

    def test_bound_on_imaginary_axis(self):
        orbit = compute_reference_orbit(_center("0", "3"), 100)
        assert orbit.truncated
        assert abs(orbit.points[-1].imag) > ORBIT_BOUND or abs(orbit.points[-1].real) > ORBIT_BOUND

    @pytest.mark.parametrize("re,im", [("0", "0"), ("-0.75", "0.1"), ("0.3", "0.5"), ("-2", "0"), ("1", "1")])
    @pytest.mark.parametrize("depth", [1, 7, 200])
    def test_length_and_truncation_rule(self, re, im, depth):
        orbit = compute_reference_orbit(_center(re, im), depth)
        assert 1 <= len(orbit) <= depth
        outside = (np.abs(orbit.points.real) > ORBIT_BOUND) | (np.abs(orbit.points.imag) > ORBIT_BOUND)
        assert orbit.truncated == bool(outside.any())
        # only the last stored value may lie outside the bound
        assert not outside[:-1].any()
        if len(orbit) < depth:
            assert orbit.truncated

    def test_truncation_is_logged_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="perturbzoom"):
            compute_reference_orbit(_center("2", "0"), 50)
        assert any("escapes after 4 of 50" in r.getMessage() for r in caplog.records)


class TestInvalidDepth:

    @pytest.mark.parametrize("depth", [0, -1, -1000])
    def test_non_positive_depth(self, depth):
        with pytest.raises(InvalidDepth):
            compute_reference_orbit(_center("0", "0"), depth)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            compute_reference_orbit(_center("0", "0"), 0)

    @pytest.mark.parametrize("depth", [2.5, "10", True])
    def test_non_integer_depth(self, depth):
        with pytest.raises(InvalidDepth):
            compute_reference_orbit(_center("0", "0"), depth)


class TestBackends:
    """The generator only needs +, -, *, comparisons and float()."""

    def test_fraction_matches_mpmath(self):
        mp_orbit = compute_reference_orbit(_center("0.25", "0.125"), 6, dps=100)
        fr_orbit = compute_reference_orbit(HighPrecisionComplex(Fraction(1, 4), Fraction(1, 8)), 6)
        assert np.array_equal(mp_orbit.points, fr_orbit.points)

    def test_decimal_backend(self):
        orbit = compute_reference_orbit(HighPrecisionComplex(Decimal("2"), Decimal("0")), 100)
        assert list(orbit.points) == [0, 4, 12, 76, 2892]

    def test_deterministic(self):
        c = _center("-0.7453", "0.1127")
        a = compute_reference_orbit(c, 300)
        b = compute_reference_orbit(c, 300)
        assert np.array_equal(a.points, b.points)
        assert a.truncated == b.truncated


class TestOrbitType:

    def test_empty_orbit_has_no_steps(self):
        assert len(Orbit(points=np.array([], dtype=np.complex128), depth=10)) == 0
        assert len(Orbit(points=[0j], depth=10)) == 0

    def test_accepts_sequences(self):
        orbit = Orbit(points=[0, 2, 4], depth=2)
        assert orbit.points.dtype == np.complex128
        assert len(orbit) == 2
