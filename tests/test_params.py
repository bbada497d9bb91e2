"""Tests for perturbzoom/params.py: immutable parameters and zoom actions."""

import dataclasses

import pytest
from mpmath import mp, mpf

from perturbzoom.errors import InvalidDepth
from perturbzoom.numeric import HighPrecisionComplex
from perturbzoom.params import RenderParameters


def _params(**kw):
    kw.setdefault("center", HighPrecisionComplex.from_strings("0", "0"))
    return RenderParameters(**kw)


class TestValidation:

    def test_defaults(self):
        p = _params()
        assert p.radius == 2.0
        assert p.depth == 1000
        assert len(p.control_colors) == 6

    @pytest.mark.parametrize("depth", [0, -3])
    def test_invalid_depth(self, depth):
        with pytest.raises(InvalidDepth):
            _params(depth=depth)

    def test_invalid_radius_and_size(self):
        with pytest.raises(ValueError):
            _params(radius=0.0)
        with pytest.raises(ValueError):
            _params(width=0)

    def test_invalid_colors(self):
        with pytest.raises(ValueError):
            _params(control_colors=((0, 0, 0),))
        with pytest.raises(ValueError):
            _params(control_colors=((0, 0, 0), (300, 0, 0)))

    def test_frozen(self):
        p = _params()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.radius = 1.0


class TestTransforms:

    def test_zoomed_returns_new_value(self):
        p = _params(radius=2.0)
        q = p.zoomed()
        assert q.radius == 1.0
        assert p.radius == 2.0
        assert q.center == p.center

    def test_with_helpers(self):
        p = _params()
        assert p.with_radius(0.1).radius == 0.1
        assert p.with_depth(50).depth == 50
        assert p.resized(30, 20).viewport.width == 30
        assert p.with_colors([(1, 2, 3), (4, 5, 6)]).control_colors == ((1, 2, 3), (4, 5, 6))
        c = HighPrecisionComplex.from_strings("-1", "0")
        assert p.with_center(c).center == c

    def test_click_at_canvas_centre_only_zooms(self):
        p = _params(width=200, height=100, radius=2.0)
        q = p.recentered_on_pixel(100, 50)
        assert q.center.to_complex() == 0j
        assert q.radius == 1.0

    def test_click_moves_centre_to_pixel(self):
        p = _params(width=200, height=100, radius=2.0)
        q = p.recentered_on_pixel(0, 0)
        assert q.center.to_complex() == complex(-4.0, 2.0)
        assert q.radius == 1.0

    def test_click_keeps_deep_offsets(self):
        p = _params(center=HighPrecisionComplex.from_strings("0.25", "0"), width=2, height=2, radius=1e-40)
        q = p.recentered_on_pixel(2, 1, zoom=1.0)
        with mp.workdps(80):
            diff = q.center.real - mpf("0.25")
        assert float(diff) == pytest.approx(1e-40, rel=1e-12)

    def test_orbit_key(self):
        p = _params()
        assert p.orbit_key == p.zoomed().orbit_key
        assert p.orbit_key == p.resized(10, 10).orbit_key
        assert p.orbit_key != p.with_depth(10).orbit_key
        assert p.orbit_key != p.recentered_on_pixel(0, 0).orbit_key
