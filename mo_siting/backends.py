# backends.py
# ソルバ境界: 不変な ModelSpec を PuLP (CBC / GLPK) か gurobipy に流し込み、
# 同期的に解いて値を読み戻す。
#
# 依存関係:
#   PuLP（既定、CBC 同梱）
#   gurobipy（任意、作れない場合は PuLP にフォールバック）

from __future__ import annotations

import time
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from mo_siting.logs import FriendlyLogger
from mo_siting.model import ModelRow, ModelSpec, ModelVar

OPTIMAL = "Optimal"


class Solution:
    """1 つの ModelSpec に対してバックエンドが返した値。"""

    def __init__(
        self,
        status: str,
        objective: Optional[float],
        values: Mapping[str, float],
        time_sec: float = 0.0,
        backend: str = "pulp",
    ):
        self.status = status
        self.objective = objective
        self.values: Dict[str, float] = dict(values)
        self.time_sec = time_sec
        self.backend = backend

    @property
    def optimal(self) -> bool:
        return self.status == OPTIMAL

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def array(self, fmt: str, shape: Tuple[int, ...]) -> np.ndarray:
        """
        添字つき変数を配列にまとめる。例:
        sol.array("net[{},{}]", (F, J))
        """
        out = np.zeros(shape, dtype=float)
        for idx in np.ndindex(*shape):
            out[idx] = self.values[fmt.format(*idx)]
        return out

    def __repr__(self) -> str:
        return f"Solution(status={self.status!r}, objective={self.objective}, backend={self.backend!r})"


class _MILPInterface:
    """
    最小限の MILP インターフェース:
        - 上下限つきの連続変数・0/1 変数
        - 線形制約  sum(c * var) (<=|>=|==) rhs
        - 線形目的（min または max）

    サブクラスは add_var, add_row, set_objective, solve, get_value,
    objective_value を実装する。
    """

    name = "abstract"

    def add_var(self, var: ModelVar):
        raise NotImplementedError

    def add_row(self, row: ModelRow):
        raise NotImplementedError

    def set_objective(self, coeffs, sense: str):
        raise NotImplementedError

    def solve(self) -> str:
        raise NotImplementedError

    def get_value(self, name: str) -> float:
        raise NotImplementedError

    def objective_value(self) -> Optional[float]:
        raise NotImplementedError

    def load(self, spec: ModelSpec):
        for v in spec.variables:
            self.add_var(v)
        for r in spec.constraints:
            self.add_row(r)
        self.set_objective(spec.objective, spec.sense)
        return self


class PuLPInterface(_MILPInterface):
    name = "pulp"

    def __init__(
        self,
        name: str,
        solver_name: str = "CBC",
        msg: bool = False,
        time_limit: Optional[float] = None,
    ):
        import pulp  # type: ignore

        self.pulp = pulp
        self.model = pulp.LpProblem(name, pulp.LpMinimize)
        self.vars: Dict[str, object] = {}
        if solver_name == "CBC":
            self.solver = pulp.PULP_CBC_CMD(
                msg=msg, timeLimit=time_limit, options=["preprocess off"]
            )
        elif solver_name == "GLPK":
            self.solver = pulp.GLPK_CMD(msg=msg, timeLimit=time_limit)
        else:
            raise ValueError(f"unknown PuLP solver: {solver_name!r} (use 'CBC' or 'GLPK')")

    def add_var(self, var: ModelVar):
        self.vars[var.name] = self.pulp.LpVariable(
            var.name, lowBound=var.lb, upBound=var.ub, cat=var.cat
        )

    def _expr(self, coeffs):
        return self.pulp.lpSum(c * self.vars[n] for n, c in coeffs)

    def add_row(self, row: ModelRow):
        expr = self._expr(row.coeffs)
        if row.sense == "<=":
            self.model += (expr <= row.rhs), row.name
        elif row.sense == ">=":
            self.model += (expr >= row.rhs), row.name
        else:
            self.model += (expr == row.rhs), row.name

    def set_objective(self, coeffs, sense: str):
        self.model.sense = self.pulp.LpMaximize if sense == "max" else self.pulp.LpMinimize
        self.model.setObjective(self._expr(coeffs))

    def solve(self) -> str:
        self.model.solve(self.solver)
        return self.pulp.LpStatus[self.model.status]

    def get_value(self, name: str) -> float:
        val = self.vars[name].value()
        return float("nan") if val is None else float(val)

    def objective_value(self) -> Optional[float]:
        val = self.pulp.value(self.model.objective)
        return None if val is None else float(val)


class GurobiInterface(_MILPInterface):
    name = "gurobi"

    _STATUS = {
        2: "Optimal",  # GRB.OPTIMAL
        3: "Infeasible",  # GRB.INFEASIBLE
        4: "Infeasible",  # GRB.INF_OR_UNBD
        5: "Unbounded",  # GRB.UNBOUNDED
    }

    def __init__(self, name: str, msg: bool = False, time_limit: Optional[float] = None):
        import gurobipy as gp  # type: ignore
        from gurobipy import GRB

        self.gp = gp
        self.GRB = GRB
        self.model = gp.Model(name)
        self.model.Params.OutputFlag = 1 if msg else 0
        if time_limit is not None:
            self.model.Params.TimeLimit = time_limit
        self.vars: Dict[str, object] = {}

    def add_var(self, var: ModelVar):
        GRB = self.GRB
        self.vars[var.name] = self.model.addVar(
            lb=-GRB.INFINITY if var.lb is None else var.lb,
            ub=GRB.INFINITY if var.ub is None else var.ub,
            vtype=GRB.BINARY if var.cat == "Binary" else GRB.CONTINUOUS,
            name=var.name,
        )

    def _expr(self, coeffs):
        return self.gp.quicksum(c * self.vars[n] for n, c in coeffs)

    def add_row(self, row: ModelRow):
        expr = self._expr(row.coeffs)
        if row.sense == "<=":
            self.model.addConstr(expr <= row.rhs, name=row.name)
        elif row.sense == ">=":
            self.model.addConstr(expr >= row.rhs, name=row.name)
        else:
            self.model.addConstr(expr == row.rhs, name=row.name)

    def set_objective(self, coeffs, sense: str):
        GRB = self.GRB
        self.model.setObjective(
            self._expr(coeffs), GRB.MAXIMIZE if sense == "max" else GRB.MINIMIZE
        )

    def solve(self) -> str:
        self.model.optimize()
        return self._STATUS.get(int(self.model.Status), "Not Solved")

    def get_value(self, name: str) -> float:
        return float(self.vars[name].X)

    def objective_value(self) -> Optional[float]:
        return float(self.model.ObjVal)


def make_backend(
    name: str,
    backend: str = "pulp",
    pulp_solver: str = "CBC",
    msg: bool = False,
    time_limit: Optional[float] = None,
    logger: Optional[FriendlyLogger] = None,
) -> _MILPInterface:
    """既定は PuLP。'gurobi' 指定時は gurobipy が作れればそれを、だめなら PuLP。"""
    logger = logger or FriendlyLogger(level="quiet")
    if backend == "gurobi":
        try:
            return GurobiInterface(name, msg=msg, time_limit=time_limit)
        except Exception as e:
            logger.warn(f"Gurobi が利用できないため PuLP にフォールバックします: {e}")
    elif backend != "pulp":
        raise ValueError(f"unknown backend: {backend!r} (use 'pulp' or 'gurobi')")
    return PuLPInterface(name, solver_name=pulp_solver, msg=msg, time_limit=time_limit)


def solve_model(
    spec: ModelSpec,
    backend: str = "pulp",
    pulp_solver: str = "CBC",
    msg: bool = False,
    time_limit: Optional[float] = None,
    log_level: str = "quiet",
    require_optimal: bool = True,
    check_tol: float = 1e-5,
) -> Solution:
    """
    spec を解いて Solution を返す（ソルバが返るまでブロック）。

    "Optimal" 以外のステータスは require_optimal なら RuntimeError、
    そうでなければステータスと NaN の値をそのまま返す。

    返ってきた値は spec の全制約で検算する。check_tol を超える違反は
    非最適と同じ扱いで、require_optimal でなければ "Infeasible" として返す。
    """
    logger = FriendlyLogger(level=log_level)
    mip = make_backend(
        spec.name, backend, pulp_solver, msg=msg, time_limit=time_limit, logger=logger
    )
    logger.model(spec.name, spec.stats(), mip.name)
    mip.load(spec)

    t0 = time.time()
    status = mip.solve()
    elapsed = time.time() - t0
    logger.debug(f"ソルバのステータス {status!r}（{elapsed:.2f}s）")

    if status != OPTIMAL:
        if require_optimal:
            raise RuntimeError(f"{spec.name}: solver returned status {status!r}")
        logger.warn(f"{spec.name}: ソルバのステータスが {status!r} でした")
        values = {n: float("nan") for n in spec.var_names()}
        return Solution(status, None, values, elapsed, mip.name)

    values = {n: mip.get_value(n) for n in spec.var_names()}

    # CBC は後処理で実行不能になったモデルでも "Optimal" を返すことがある
    bad = spec.check(values, tol=check_tol)
    if bad:
        if require_optimal:
            raise RuntimeError(
                f"{spec.name}: solver returned status {status!r} but {len(bad)} rows "
                f"are violated: {bad[:5]}"
            )
        logger.warn(f"{spec.name}: 制約違反 {len(bad)} 件: {bad[:5]}")
        status = "Infeasible"
    return Solution(status, mip.objective_value(), values, elapsed, mip.name)
