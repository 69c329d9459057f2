import pytest

from chomptraj.box2 import Box2


def unit_box():
    return Box2((0.0, 0.0), (1.0, 1.0))


def test_default_box_is_empty():
    assert Box2().is_empty() is True
    assert unit_box().is_empty() is False


def test_add_point_to_empty_box():
    box = Box2()
    box.add_point((2.0, 3.0))
    assert box.p0 == (2.0, 3.0)
    assert box.p1 == (2.0, 3.0)
    box.add_point((-1.0, 5.0))
    assert box.p0 == (-1.0, 3.0)
    assert box.p1 == (2.0, 5.0)


def test_clear_empties_box():
    box = unit_box()
    box.clear()
    assert box.is_empty()


def test_corners_are_distinct_and_on_box():
    box = Box2((-1.0, 2.0), (3.0, 5.0))
    corners = [box.corner(i) for i in range(4)]
    assert len(set(corners)) == 4
    assert corners[0] == box.p0
    assert corners[2] == box.p1
    assert all(box.contains(c) for c in corners)


def test_center_and_lerp_agree():
    box = Box2((-2.0, 4.0), (6.0, 8.0))
    assert box.center() == box.lerp(0.5, 0.5)
    assert box.lerp(0.0, 0.0) == box.p0
    assert box.lerp(1.0, 1.0) == box.p1


def test_contains_boundary_and_outside():
    box = unit_box()
    assert box.contains((1.0, 0.0))
    assert not box.contains((1.5, 0.5))


def test_dilate_grows_box():
    box = unit_box()
    box.dilate(0.5)
    assert box.contains((-0.5, 1.5))
    assert not box.contains((-0.6, 0.5))


def test_intersects():
    a = unit_box()
    b = Box2((0.5, 0.5), (2.0, 2.0))
    c = Box2((3.0, 3.0), (4.0, 4.0))
    assert a.intersects(b) and b.intersects(a)
    assert not a.intersects(c)
    assert not a.intersects(Box2())


def test_unite_contains_both():
    a = unit_box()
    b = Box2((3.0, -2.0), (4.0, 0.5))
    u = a.unite(b)
    for box in (a, b):
        assert u.contains(box.p0) and u.contains(box.p1)
    assert a.unite(Box2()) == a
    assert Box2().unite(b) == b


def test_intersect_inside_both():
    a = unit_box()
    b = Box2((0.5, -1.0), (2.0, 0.75))
    i = a.intersect(b)
    assert not i.is_empty()
    for p in (i.p0, i.p1):
        assert a.contains(p) and b.contains(p)
    assert a.intersect(Box2((5.0, 5.0), (6.0, 6.0))).is_empty()


def test_closest():
    box = unit_box()
    assert box.closest((0.25, 0.75)) == (0.25, 0.75)
    p = box.closest((5.0, -3.0))
    assert box.contains(p)
    assert p == box.corner(1)


def test_clip_line_fully_inside():
    assert unit_box().clip_line((0.2, 0.2), (0.8, 0.6)) == (0.0, 1.0)


def test_clip_line_missing_box():
    assert unit_box().clip_line((2.0, 2.0), (3.0, 5.0)) is None
    assert unit_box().clip_segment((2.0, 2.0), (3.0, 5.0)) is None


def test_clip_segment_endpoints_on_box():
    box = unit_box()
    result = box.clip_segment((-1.0, 0.5), (2.0, 0.5))
    assert result is not None
    a, b = result
    assert box.contains(a) and box.contains(b)
    assert a[0] == pytest.approx(box.p0[0])
    assert b[0] == pytest.approx(box.p1[0])
    u0, u1 = box.clip_line((-1.0, 0.5), (2.0, 0.5))
    assert 0.0 < u0 < u1 < 1.0