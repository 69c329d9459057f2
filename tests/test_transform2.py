import math

import numpy as np
import pytest

from chomptraj.transform2 import Affine2, Transform2


def test_transform_fwd_inv_round_trip():
    t = Transform2((1.5, -2.0), 0.7)
    p = (3.0, 4.0)
    result = t.transform_inv(t.transform_fwd(p))
    assert np.allclose(np.asarray(result, dtype=float), p, atol=1e-9)


def test_identity_transform_leaves_points():
    assert Transform2().transform_fwd((2.0, 5.0)) == pytest.approx((2.0, 5.0))


def test_inverse_composes_to_identity():
    t = Transform2((1.0, 2.0), 1.2)
    ident = t.compose(t.inverse())
    assert np.allclose(np.asarray(ident.translation, dtype=float), (0.0, 0.0), atol=1e-9)
    assert ident.rotation == pytest.approx(0.0, abs=1e-12)


def test_rot_fwd_times_rot_inv_is_identity():
    t = Transform2((0.0, 0.0), 0.4)
    assert np.allclose(t.rot_fwd() @ t.rot_inv(), np.eye(2))


def test_compose_matches_sequential_application():
    a = Transform2((1.0, 0.0), 0.3)
    b = Transform2((0.0, 2.0), -1.1)
    p = (0.5, 0.25)
    composed = (a * b).transform_fwd(p)
    sequential = a.transform_fwd(b.transform_fwd(p))
    assert np.allclose(np.asarray(composed, dtype=float), np.asarray(sequential, dtype=float), atol=1e-9)
    applied = a * p
    direct = a.transform_fwd(p)
    assert np.allclose(np.asarray(applied, dtype=float), np.asarray(direct, dtype=float), atol=1e-9)


def test_compose_wraps_rotation():
    a = Transform2((0.0, 0.0), 3.0)
    r = a.compose(a).rotation
    assert -math.pi <= r < math.pi


def test_interpolate_endpoints():
    a = Transform2((0.0, 0.0), 0.2)
    b = Transform2((4.0, -2.0), 1.0)
    start = a.interpolate(b, 0.0)
    end = a.interpolate(b, 1.0)
    assert np.allclose(np.asarray(start.translation, dtype=float), (0.0, 0.0), atol=1e-9)
    assert start.rotation == pytest.approx(0.2)
    assert np.allclose(np.asarray(end.translation, dtype=float), (4.0, -2.0), atol=1e-9)
    assert end.rotation == pytest.approx(1.0)


def test_interpolate_follows_short_arc():
    a = Transform2((0.0, 0.0), 3.0)
    b = Transform2((0.0, 0.0), -3.0)
    mid = a.interpolate(b, 0.5)
    assert abs(abs(mid.rotation) - math.pi) < 1e-9


def test_str_reports_degrees():
    assert str(Transform2((1.0, 2.0), math.pi)) == "< 1.0, 2.0, 180.0>"


def test_affine_identity_and_translation():
    assert Affine2.identity().transform((3.0, -1.0)) == pytest.approx((3.0, -1.0))
    assert Affine2.translation(1.0, 2.0).transform((3.0, -1.0)) == pytest.approx((4.0, 1.0))


def test_affine_rotation_quarter_turn():
    result = Affine2.rotation(math.pi / 2).transform((1.0, 0.0))
    assert np.allclose(np.asarray(result, dtype=float), (0.0, 1.0), atol=1e-9)


def test_affine_scale():
    assert Affine2.scale(2.0, 3.0).transform((1.0, 1.0)) == pytest.approx((2.0, 3.0))


def test_affine_inverse_round_trip():
    a = Affine2(np.array([[2.0, 1.0], [0.5, 3.0]]), (1.0, -4.0))
    p = (0.3, 7.0)
    result = a.inverse().transform(a.transform(p))
    assert np.allclose(np.asarray(result, dtype=float), p, atol=1e-9)
    assert np.allclose(a.compose(a.inverse()).m, np.eye(2))


def test_affine_singular_inverse_not_finite():
    inv = Affine2.scale(0.0, 1.0).inverse()
    assert np.isfinite(np.asarray(inv.m, dtype=float)).sum() < 4


def test_affine_from_transform_agrees():
    t = Transform2((1.0, -1.0), 0.9)
    a = Affine2.from_transform(t)
    p = (2.0, 3.0)
    via_affine = a.transform(p)
    via_transform = t.transform_fwd(p)
    assert np.allclose(np.asarray(via_affine, dtype=float), np.asarray(via_transform, dtype=float), atol=1e-9)


def test_affine_compose_matches_sequential():
    a = Affine2.rotation(0.5)
    b = Affine2.translation(1.0, 2.0)
    p = (4.0, -3.0)
    composed = (a * b).transform(p)
    sequential = a.transform(b.transform(p))
    assert np.allclose(np.asarray(composed, dtype=float), np.asarray(sequential, dtype=float), atol=1e-9)
    applied = a * p
    direct = a.transform(p)
    assert np.allclose(np.asarray(applied, dtype=float), np.asarray(direct, dtype=float), atol=1e-9)