# toy_lp.py
# 3 変数の重みつき和 LP:
#   opt  w0*x0 + w1*x1 + w2*x2
#   s.t. x0 + x1 + x2 <= rhs   (max)   or   >= rhs   (min)
#        0 <= xi <= upper

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from mo_siting.backends import solve_model
from mo_siting.logs import FriendlyLogger
from mo_siting.model import ModelRow, ModelSpec, ModelVar, lin

WEIGHTS = (0.5, 0.2, 0.3)
UPPER = 2.0 / 3.0
RHS = 1.0


def build_toy_lp(
    weights: Sequence[float] = WEIGHTS,
    upper: float = UPPER,
    rhs: float = RHS,
    sense: str = "max",
) -> ModelSpec:
    """
    sense="max" なら単体制約は上限、sense="min" なら下限になる。
    重みが正ならどちらでも最適解でこの制約は等号で効く。
    """
    if sense not in ("min", "max"):
        raise ValueError(f"sense must be 'min' or 'max', got {sense!r}")
    names = [f"x{i}" for i in range(len(weights))]
    variables = tuple(ModelVar(n, 0.0, upper) for n in names)
    simplex = ModelRow("simplex", lin((n, 1.0) for n in names), "<=" if sense == "max" else ">=", rhs)
    return ModelSpec("toy_lp", variables, (simplex,), lin(zip(names, weights)), sense)


def solve_toy_lp(
    weights: Sequence[float] = WEIGHTS,
    upper: float = UPPER,
    rhs: float = RHS,
    sense: str = "max",
    backend: str = "pulp",
    pulp_solver: str = "CBC",
    log_level: str = "info",
) -> Dict[str, object]:
    logger = FriendlyLogger(level=log_level)
    logger.header(f"トイ LP（重みつき和, {sense}）を解きます")
    spec = build_toy_lp(weights, upper, rhs, sense)
    sol = solve_model(spec, backend=backend, pulp_solver=pulp_solver, log_level=log_level)
    x = np.array([sol[n] for n in spec.var_names()], dtype=float)
    logger.done("求解完了")
    logger.step(f"✨ x = {np.round(x, 6).tolist()}, 目的値 = {sol.objective:.6f}")
    return dict(x=x, objective=sol.objective, status=sol.status, model=spec)


if __name__ == "__main__":
    from mo_siting.plotting import plot_toy_lp

    res = solve_toy_lp()
    print("x:", res["x"], "objective:", res["objective"])
    plot_toy_lp(res["x"], upper=UPPER, rhs=RHS)
