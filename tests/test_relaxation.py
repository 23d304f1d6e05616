import math

import numpy as np
import pytest

from mo_siting.instance import FacilityTypes, SitingData
from mo_siting.relaxation import default_big_m, nearest_facility_relaxation
from mo_siting.siting import solve_siting

SMALL = ["small[0]", "small[1]", "small[2]"]
LARGE = ["large[0]", "large[1]", "large[2]"]


def _values(aux, small=(0, 0, 0), large=(0, 0, 0)):
    v = {"d[0]": aux}
    v.update(dict(zip(SMALL, small)))
    v.update(dict(zip(LARGE, large)))
    return v


class TestNearestFacilityRelaxation:
    """Tests for the big-M nearest-facility helper"""

    def test_returns_aux_rows_and_m(self):
        aux, rows, M = nearest_facility_relaxation("d[0]", [0.2, 0.5, 1.0], [SMALL, LARGE], (1.0, 0.5))
        assert M == pytest.approx(math.sqrt(2.0))
        assert aux.name == "d[0]"
        assert aux.lb == 0.0 and aux.ub is None
        assert len(rows) == 3
        coeffs = dict(rows[1].coeffs)
        assert coeffs["d[0]"] == 1.0
        assert coeffs["small[1]"] == pytest.approx(M - 0.5)
        assert coeffs["large[1]"] == pytest.approx(M - 0.25)
        assert rows[1].sense == "<=" and rows[1].rhs == pytest.approx(M)

    def test_default_big_m(self):
        assert default_big_m((1.0, 0.5)) == pytest.approx(math.sqrt(2.0))
        assert default_big_m((2.0, 0.5), domain_diameter=3.0) == pytest.approx(6.0)

    @pytest.mark.parametrize("d", np.linspace(0.0, math.sqrt(2.0), 7))
    def test_non_binding_without_facility(self, d):
        _, rows, M = nearest_facility_relaxation("d[0]", [d, d, d], [SMALL, LARGE], (1.0, 0.5))
        # largest weighted distance any built site could give
        values = _values(M)
        assert all(r.violation(values) == 0.0 for r in rows)

    def test_binding_with_facility(self):
        _, rows, _ = nearest_facility_relaxation("d[0]", [0.2, 0.5, 1.0], [SMALL, LARGE], (1.0, 0.5))
        # small built at site 1 -> aux <= 0.5
        assert rows[1].violation(_values(0.5, small=(0, 1, 0))) == pytest.approx(0.0, abs=1e-12)
        assert rows[1].violation(_values(0.6, small=(0, 1, 0))) == pytest.approx(0.1)
        # large built at site 2 -> aux <= 1.0 * 0.5
        assert rows[2].violation(_values(0.6, large=(0, 0, 1))) == pytest.approx(0.1)

    def test_distance_outside_domain_raises(self):
        with pytest.raises(ValueError, match="big-M"):
            nearest_facility_relaxation("d[0]", [0.2, 2.0, 0.1], [SMALL, LARGE], (1.0, 0.5))

    def test_explicit_m_or_domain_skips_guard(self):
        _, _, M = nearest_facility_relaxation("d[0]", [0.2, 2.0, 0.1], [SMALL, LARGE], (1.0, 0.5), big_m=5.0)
        assert M == 5.0
        _, _, M = nearest_facility_relaxation(
            "d[0]", [0.2, 2.0, 0.1], [SMALL, LARGE], (1.0, 0.5), domain_diameter=3.0
        )
        assert M == pytest.approx(3.0)

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            nearest_facility_relaxation("d[0]", [0.2, 0.5], [SMALL, LARGE], (1.0, 0.5))
        with pytest.raises(ValueError):
            nearest_facility_relaxation("d[0]", [0.2, 0.5, 1.0], [SMALL], (1.0, 0.5))


class TestBigMInTheModel:
    """Nearest-distance semantics once solved"""

    @pytest.fixture
    def city_data(self):
        # farm on candidate 0, the city 0.6 away from it
        return SitingData.from_coordinates(
            farms=[(0.0, 0.0)],
            cand=[(0.0, 0.0), (1.0, 1.0)],
            cities=[(0.6, 0.0)],
        )

    def test_default_m_gives_true_nearest_distance(self, city_data):
        res = solve_siting(city_data, FacilityTypes(), (1.0, -0.2, 0.0, 1.0), log_level="quiet")
        assert res["selected_sites"] == [0]
        assert res["dist_city"][0] == pytest.approx(0.6, abs=1e-5)
        assert res["f"][1] == pytest.approx(0.6, abs=1e-5)

    def test_too_small_m_caps_the_distance(self, city_data):
        res = solve_siting(city_data, FacilityTypes(), (1.0, -0.2, 0.0, 1.0), big_m=0.3, log_level="quiet")
        assert res["selected_sites"] == [0]
        # the empty site 1 now binds: the value is wrong, not the nearest distance
        assert res["dist_city"][0] == pytest.approx(0.3, abs=1e-5)
        assert res["dist_city"][0] < 0.6 - 0.1
