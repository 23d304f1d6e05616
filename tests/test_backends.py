import numpy as np
import pytest

from mo_siting import backends
from mo_siting.backends import PuLPInterface, Solution, make_backend, solve_model
from mo_siting.model import ModelRow, ModelSpec, ModelVar, lin


def _covering_lp():
    # min x + 2y  s.t.  x + y >= 1, x <= 0.4
    return ModelSpec(
        "cover",
        (ModelVar("x", 0.0, 0.4), ModelVar("y", 0.0, None)),
        (ModelRow("cover", lin([("x", 1.0), ("y", 1.0)]), ">=", 1.0),),
        lin([("x", 1.0), ("y", 2.0)]),
        "min",
    )


def _infeasible_lp():
    return ModelSpec(
        "infeasible",
        (ModelVar("x", 0.0, 1.0),),
        (ModelRow("low", (("x", 1.0),), ">=", 2.0),),
        (("x", 1.0),),
        "min",
    )


class TestSolveModel:
    """Tests for the PuLP / CBC solve boundary"""

    def test_optimal_values(self):
        sol = solve_model(_covering_lp())
        assert sol.optimal
        assert sol.status == "Optimal"
        assert sol["x"] == pytest.approx(0.4)
        assert sol["y"] == pytest.approx(0.6)
        assert sol.objective == pytest.approx(1.6)

    def test_binary_variables(self):
        spec = ModelSpec(
            "knap",
            tuple(ModelVar(f"b[{k}]", 0, 1, "Binary") for k in range(3)),
            (ModelRow("weight", lin([("b[0]", 2.0), ("b[1]", 3.0), ("b[2]", 4.0)]), "<=", 5.0),),
            lin([("b[0]", 3.0), ("b[1]", 4.0), ("b[2]", 5.0)]),
            "max",
        )
        sol = solve_model(spec)
        assert sol.objective == pytest.approx(7.0)
        np.testing.assert_allclose(sol.array("b[{}]", (3,)), [1.0, 1.0, 0.0], atol=1e-6)

    def test_infeasible_raises(self):
        with pytest.raises(RuntimeError, match="Infeasible"):
            solve_model(_infeasible_lp())

    def test_infeasible_without_raising(self):
        sol = solve_model(_infeasible_lp(), require_optimal=False)
        assert sol.status == "Infeasible"
        assert not sol.optimal
        assert sol.objective is None
        assert np.isnan(sol["x"])

    def test_unknown_backend_raises(self):
        with pytest.raises(ValueError):
            solve_model(_covering_lp(), backend="cplex")

    def test_unknown_pulp_solver_raises(self):
        with pytest.raises(ValueError):
            PuLPInterface("m", solver_name="XPRESS")

    def test_cbc_runs_without_preprocessing(self):
        assert "preprocess off" in PuLPInterface("m").solver.options


class _OptimalButWrong:
    """Backend that reports "Optimal" with values that break the cover row."""

    name = "fake"

    def load(self, spec):
        pass

    def solve(self):
        return "Optimal"

    def get_value(self, name):
        return 0.0

    def objective_value(self):
        return 0.0


class TestSolveModelRowCheck:
    """Values returned as "Optimal" are re-checked against every row"""

    @pytest.fixture
    def wrong_backend(self, monkeypatch):
        monkeypatch.setattr(backends, "make_backend", lambda *args, **kwargs: _OptimalButWrong())

    def test_violated_rows_raise(self, wrong_backend):
        with pytest.raises(RuntimeError, match="cover"):
            solve_model(_covering_lp())

    def test_violated_rows_downgrade_status(self, wrong_backend, capsys):
        sol = solve_model(_covering_lp(), require_optimal=False, log_level="info")
        assert sol.status == "Infeasible"
        assert not sol.optimal
        assert "制約違反" in capsys.readouterr().out

    def test_solved_values_satisfy_rows(self):
        spec = _covering_lp()
        sol = solve_model(spec)
        assert spec.check(sol.values, tol=1e-6) == []


class TestMakeBackend:
    """Tests for backend selection"""

    def test_default_is_pulp(self):
        assert isinstance(make_backend("m"), PuLPInterface)

    def test_gurobi_falls_back_to_pulp(self, monkeypatch, capsys):
        class _Broken:
            def __init__(self, *args, **kwargs):
                raise ImportError("No module named 'gurobipy'")

        monkeypatch.setattr(backends, "GurobiInterface", _Broken)
        logger = backends.FriendlyLogger(level="info")
        mip = make_backend("m", backend="gurobi", logger=logger)
        assert isinstance(mip, PuLPInterface)
        assert "PuLP にフォールバック" in capsys.readouterr().out

    def test_gurobi_fallback_still_solves(self, monkeypatch):
        class _Broken:
            def __init__(self, *args, **kwargs):
                raise RuntimeError("no licence")

        monkeypatch.setattr(backends, "GurobiInterface", _Broken)
        sol = solve_model(_covering_lp(), backend="gurobi")
        assert sol.backend == "pulp"
        assert sol.objective == pytest.approx(1.6)


class TestSolution:
    """Tests for Solution helpers"""

    def test_array_gathers_indexed_names(self):
        values = {f"v[{i},{j}]": 10 * i + j for i in range(2) for j in range(3)}
        sol = Solution("Optimal", 0.0, values)
        np.testing.assert_array_equal(sol.array("v[{},{}]", (2, 3)), [[0, 1, 2], [10, 11, 12]])

    def test_array_empty_shape(self):
        assert Solution("Optimal", 0.0, {}).array("d[{}]", (0,)).shape == (0,)
