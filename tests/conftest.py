import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from mo_siting.instance import SitingData


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def two_site_data():
    """One farm sitting on candidate 0, candidate 1 in the far corner."""
    return SitingData.from_coordinates(
        farms=[(0.2, 0.3)],
        cand=[(0.2, 0.3), (0.8, 0.9)],
    )


@pytest.fixture
def fake_result():
    """Hand-made solution for 3 farms / 3 candidates, no solver needed."""
    flow = np.array(
        [
            [1.0, 0.0, 0.0],
            [0.5, 0.0, 0.5],
            [0.0, 0.0, 1.0],
        ]
    )
    return dict(
        status="Optimal",
        objective=1.23,
        f=np.array([0.4, 0.9, 1.1, 4.0]),
        build=np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]),
        small=np.array([1.0, 0.0, 0.0]),
        large=np.array([0.0, 0.0, 1.0]),
        flow=flow,
        dist_city=np.array([0.9]),
        dist_lake=np.array([0.5, 0.6]),
        selected_sites=[0, 2],
        site_type=[0, None, 1],
    )


@pytest.fixture
def three_by_three_data():
    return SitingData(
        farms=[(0.1, 0.1), (0.5, 0.5), (0.9, 0.9)],
        cities=[(0.0, 1.0)],
        lakes=[(1.0, 0.0), (0.5, 0.0)],
        cand=[(0.1, 0.2), (0.5, 0.9), (0.8, 0.8)],
    )
