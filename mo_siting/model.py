# model.py
# LP / MILP モデルの不変な記述。ビルダーは ModelSpec を返し、
# 求解時にバックエンド（backends.py）が PuLP か Gurobi に流し込む。

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

CATEGORIES = ("Continuous", "Binary")
SENSES = ("<=", ">=", "==")

Coeffs = Tuple[Tuple[str, float], ...]


def lin(terms: Iterable[Tuple[str, float]]) -> Coeffs:
    """(name, coeff) の組を係数タプルにまとめる（同名は合算、0 は落とす）。"""
    acc: Dict[str, float] = {}
    for name, c in terms:
        acc[name] = acc.get(name, 0.0) + float(c)
    return tuple((n, c) for n, c in acc.items() if c != 0.0)


@dataclass(frozen=True)
class ModelVar:
    name: str
    lb: Optional[float] = 0.0
    ub: Optional[float] = None
    cat: str = "Continuous"

    def __post_init__(self):
        if self.cat not in CATEGORIES:
            raise ValueError(f"unknown variable category: {self.cat!r}")
        if self.lb is not None and self.ub is not None and self.lb > self.ub:
            raise ValueError(f"{self.name}: lower bound {self.lb} > upper bound {self.ub}")


@dataclass(frozen=True)
class ModelRow:
    """線形制約  sum(c * var) <sense> rhs"""

    name: str
    coeffs: Coeffs
    sense: str
    rhs: float = 0.0

    def __post_init__(self):
        if self.sense not in SENSES:
            raise ValueError(f"{self.name}: unknown constraint sense {self.sense!r}")

    def lhs(self, values: Mapping[str, float]) -> float:
        return sum(c * values[n] for n, c in self.coeffs)

    def violation(self, values: Mapping[str, float]) -> float:
        lhs = self.lhs(values)
        if self.sense == "<=":
            return max(0.0, lhs - self.rhs)
        if self.sense == ">=":
            return max(0.0, self.rhs - lhs)
        return abs(lhs - self.rhs)


@dataclass(frozen=True)
class ModelSpec:
    name: str
    variables: Tuple[ModelVar, ...]
    constraints: Tuple[ModelRow, ...]
    objective: Coeffs = ()
    sense: str = "min"
    _index: Dict[str, ModelVar] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.sense not in ("min", "max"):
            raise ValueError(f"objective sense must be 'min' or 'max', got {self.sense!r}")
        index: Dict[str, ModelVar] = {}
        for v in self.variables:
            if v.name in index:
                raise ValueError(f"duplicate variable name: {v.name}")
            index[v.name] = v
        seen = set()
        for r in self.constraints:
            if r.name in seen:
                raise ValueError(f"duplicate constraint name: {r.name}")
            seen.add(r.name)
            self._check_names(r.coeffs, f"constraint {r.name}", index)
        self._check_names(self.objective, "objective", index)
        # frozen なので参照表はここで一度だけ埋める
        object.__setattr__(self, "_index", index)

    @staticmethod
    def _check_names(coeffs: Coeffs, where: str, index: Mapping[str, ModelVar]):
        for n, _ in coeffs:
            if n not in index:
                raise ValueError(f"{where} references unknown variable {n!r}")

    def var(self, name: str) -> ModelVar:
        return self._index[name]

    def row(self, name: str) -> ModelRow:
        for r in self.constraints:
            if r.name == name:
                return r
        raise KeyError(name)

    def var_names(self) -> List[str]:
        return [v.name for v in self.variables]

    def with_objective(self, coeffs: Iterable[Tuple[str, float]], sense: str = "min") -> "ModelSpec":
        return replace(self, objective=lin(coeffs), sense=sense)

    def objective_value(self, values: Mapping[str, float]) -> float:
        return sum(c * values[n] for n, c in self.objective)

    def check(self, values: Mapping[str, float], tol: float = 1e-6) -> List[str]:
        """values が tol を超えて破っている制約（と変数の上下限）の名前。"""
        bad = []
        for v in self.variables:
            x = values[v.name]
            if v.lb is not None and x < v.lb - tol:
                bad.append(f"lb:{v.name}")
            if v.ub is not None and x > v.ub + tol:
                bad.append(f"ub:{v.name}")
        for r in self.constraints:
            if r.violation(values) > tol:
                bad.append(r.name)
        return bad

    def stats(self) -> Dict[str, int]:
        return dict(
            variables=len(self.variables),
            binaries=sum(v.cat == "Binary" for v in self.variables),
            constraints=len(self.constraints),
        )
