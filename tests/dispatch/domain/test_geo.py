import pytest
from dispatch.pricing.geo import haversine_km

MALANG = (-7.9666, 112.6326)
BATU = (-7.8671, 112.5239)


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(MALANG, MALANG) == 0.0

    def test_symmetric(self):
        assert haversine_km(MALANG, BATU) == haversine_km(BATU, MALANG)

    def test_known_meridian_distance(self):
        # 0.018886 degrees of latitude on a 6371 km sphere
        assert haversine_km(MALANG, (-7.947714, 112.6326)) == pytest.approx(2.1, abs=0.001)

    def test_one_degree_of_latitude(self):
        assert haversine_km((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111.195, abs=0.001)

    def test_antipodal_points(self):
        assert haversine_km((0.0, 0.0), (0.0, 180.0)) == pytest.approx(20015.087, abs=0.01)
