"""Distance estimation."""

import pytest
from django.test import override_settings

from apps.core.exceptions import ValidationError
from apps.geo.distance import HaversineEstimator, Distance, get_geo_provider


class TestHaversineEstimator:

    def setup_method(self):
        self.geo = HaversineEstimator()

    def test_same_point_is_zero(self):
        assert self.geo.estimate((14.69, -17.44), (14.69, -17.44)) == Distance(km=0.0, minutes=0)

    def test_one_degree_of_latitude(self):
        result = self.geo.estimate((0, 0), (1, 0))
        assert result.km == pytest.approx(111.19, abs=0.01)
        # above 50 km the highway speed applies
        assert result.minutes == round(result.km / 80 * 60)

    def test_short_trip_uses_urban_speed(self):
        result = self.geo.estimate((14.6928, -17.4467), (14.7167, -17.4677))
        assert result.km < 50
        assert result.minutes == round(result.km / 60 * 60)

    def test_km_rounded_to_two_decimals(self):
        result = self.geo.estimate((14.6928, -17.4467), (14.7910, -16.9359))
        assert result.km == round(result.km, 2)

    @pytest.mark.parametrize("a, b", [
        ((91, 0), (0, 0)),
        ((0, 0), (-90.5, 0)),
        ((0, 181), (0, 0)),
        ((0, 0), (0, -180.1)),
    ])
    def test_out_of_range_rejected(self, a, b):
        with pytest.raises(ValidationError):
            self.geo.estimate(a, b)


class StubProvider:
    def estimate(self, a, b):
        return Distance(km=42.0, minutes=30)


class TestProviderLookup:

    def test_default_is_haversine(self):
        assert isinstance(get_geo_provider(), HaversineEstimator)

    @override_settings(GEO_PROVIDER="tests.test_geo.StubProvider")
    def test_setting_selects_provider(self):
        assert get_geo_provider().estimate((0, 0), (1, 1)).km == 42.0
