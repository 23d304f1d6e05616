import numpy as np
import pytest

from mo_siting.instance import FacilityTypes
from mo_siting.report import flow_frame, objective_frame, print_summary, site_frame
from mo_siting.siting import WEIGHTS


class TestReport:
    """Tests for the result tables"""

    def test_objective_frame(self, fake_result):
        df = objective_frame(fake_result, WEIGHTS)
        assert list(df.index) == ["f1", "f2", "f3", "f4"]
        assert df.loc["f2", "component"] == "safety"
        assert df.loc["f3", "weighted"] == pytest.approx(-0.3 * 1.1)
        assert df["weighted"].sum() == pytest.approx(float(np.dot(WEIGHTS, fake_result["f"])))

    def test_site_frame(self, three_by_three_data, fake_result):
        df = site_frame(three_by_three_data, fake_result, FacilityTypes())
        assert len(df) == 3
        assert df["built"].tolist() == ["small", None, "large"]
        assert df["built"].dtype == object
        assert df["built"].isna().tolist() == [False, True, False]
        np.testing.assert_allclose(df["inbound"], [1.5, 0.0, 1.5])
        np.testing.assert_allclose(df["capacity"], [2.0, 0.0, 10.0])
        assert df.loc[0, "utilisation"] == pytest.approx(0.75)
        assert np.isnan(df.loc[1, "utilisation"])

    def test_flow_frame(self, fake_result):
        df = flow_frame(fake_result)
        assert len(df) == 4
        assert df["fraction"].sum() == pytest.approx(3.0)
        assert set(df.columns) == {"farm", "site", "fraction"}

    def test_print_summary(self, three_by_three_data, fake_result, capsys):
        print_summary(three_by_three_data, fake_result, FacilityTypes(), WEIGHTS)
        out = capsys.readouterr().out
        assert "RESULT (Optimal)" in out
        assert "transportation" in out
        assert "large" in out
