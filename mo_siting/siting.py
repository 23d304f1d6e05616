# siting.py
# 4 目的の廃棄物処理施設配置 MILP
#   f1 輸送, f2 安全性, f3 水質, f4 建設費
# を重みつき和 1 本にまとめて LP/MILP バックエンドで解く。
#
# 変数
#   build[t][j] ∈ {0,1}   候補地 j にタイプ t の施設（small / large）
#   net[i,j]   ∈ [0,1]   農場 i の廃棄物 1 単位のうち j へ送る割合
#   dist_city[c], dist_lake[l] ≥ 0   最寄り施設までの重みつき距離
#   f1..f4               目的の各成分（等式制約で固定）

from __future__ import annotations

import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from mo_siting.backends import solve_model
from mo_siting.instance import (
    UNIT_SQUARE_DIAMETER,
    FacilityTypes,
    SitingData,
    make_random_instance,
)
from mo_siting.logs import FriendlyLogger
from mo_siting.model import ModelRow, ModelSpec, ModelVar, lin
from mo_siting.relaxation import default_big_m, nearest_facility_relaxation

OBJECTIVES = ("f1", "f2", "f3", "f4")
OBJECTIVE_LABELS = {
    "f1": "transportation",
    "f2": "safety",
    "f3": "water quality",
    "f4": "investment",
}
# 輸送と建設費は小さく、施設は都市・水域から遠く
WEIGHTS = (0.1, -0.2, -0.3, 1.0)


def build_var(types: FacilityTypes, t: int, j: int) -> str:
    return f"{types.names[t]}[{j}]"


def net_var(i: int, j: int) -> str:
    return f"net[{i},{j}]"


def scalarize(
    weights: Sequence[float], names: Sequence[str] = OBJECTIVES
) -> Tuple[Tuple[str, float], ...]:
    """
    目的成分の重みつき和（最小化）。負の重みはその成分の最大化になる。
    """
    if len(weights) != len(names):
        raise ValueError(
            f"{len(weights)} weights given for {len(names)} objective components {tuple(names)}"
        )
    return lin(zip(names, weights))


def siting_big_m(
    types: FacilityTypes,
    big_m: Optional[float] = None,
    domain_diameter: float = UNIT_SQUARE_DIAMETER,
) -> Dict[str, float]:
    """安全性・水質の緩和で使う big-M。"""
    if big_m is not None:
        return dict(safety=float(big_m), water=float(big_m))
    return dict(
        safety=default_big_m(types.safety_weight, domain_diameter),
        water=default_big_m(types.water_weight, domain_diameter),
    )


def build_siting_model(
    data: SitingData,
    types: FacilityTypes = FacilityTypes(),
    weights: Sequence[float] = WEIGHTS,
    big_m: Optional[float] = None,
    domain_diameter: float = UNIT_SQUARE_DIAMETER,
    name: str = "waste_siting",
) -> ModelSpec:
    """
    data に対する施設配置 MILP を組み立てる。新しい ModelSpec を返すだけで
    ほかには何も触らない。

    big_m を渡すと両方の最寄り施設緩和の big-M を上書きする。既定では
    それぞれ domain_diameter * その目的の重みの最大値。
    """
    F, C, L, J, T = data.F, data.C, data.L, data.J, types.T
    build = [[build_var(types, t, j) for j in range(J)] for t in range(T)]

    variables: List[ModelVar] = []
    rows: List[ModelRow] = []

    # 施設の建設
    for t in range(T):
        variables += [ModelVar(build[t][j], 0, 1, "Binary") for j in range(J)]
    for j in range(J):
        rows.append(ModelRow(f"exclusive[{j}]", lin((build[t][j], 1.0) for t in range(T)), "<=", 1.0))

    # 廃棄物の流れ
    variables += [ModelVar(net_var(i, j), 0.0, 1.0) for i in range(F) for j in range(J)]
    for i in range(F):
        rows.append(ModelRow(f"flow[{i}]", lin((net_var(i, j), 1.0) for j in range(J)), "==", 1.0))
    for j in range(J):
        terms = [(net_var(i, j), 1.0) for i in range(F)]
        terms += [(build[t][j], -types.capacity[t]) for t in range(T)]
        rows.append(ModelRow(f"capacity[{j}]", lin(terms), "<=", 0.0))

    # 最寄り施設までの距離
    for label, prefix, dmat, w in (
        ("safety", "dist_city", data.d_city, types.safety_weight),
        ("water", "dist_lake", data.d_lake, types.water_weight),
    ):
        for k in range(dmat.shape[0]):
            aux, relax, _ = nearest_facility_relaxation(
                f"{prefix}[{k}]",
                dmat[k],
                build,
                w,
                big_m=big_m,
                domain_diameter=domain_diameter,
                row_prefix=f"{label}_{k}",
            )
            variables.append(aux)
            rows += relax

    # 目的成分（等式で固定）
    variables += [ModelVar(f, lb=None, ub=None) for f in OBJECTIVES]
    rows.append(
        ModelRow(
            "def_f1",
            lin(
                [("f1", 1.0)]
                + [(net_var(i, j), -data.d_farm[i, j]) for i in range(F) for j in range(J)]
            ),
            "==",
            0.0,
        )
    )
    rows.append(
        ModelRow("def_f2", lin([("f2", 1.0)] + [(f"dist_city[{c}]", -1.0) for c in range(C)]), "==", 0.0)
    )
    rows.append(
        ModelRow("def_f3", lin([("f3", 1.0)] + [(f"dist_lake[{l}]", -1.0) for l in range(L)]), "==", 0.0)
    )
    rows.append(
        ModelRow(
            "def_f4",
            lin([("f4", 1.0)] + [(build[t][j], -types.cost[t]) for t in range(T) for j in range(J)]),
            "==",
            0.0,
        )
    )

    return ModelSpec(name, tuple(variables), tuple(rows), scalarize(weights), "min")


def extract_solution(data: SitingData, types: FacilityTypes, sol) -> Dict[str, object]:
    """バックエンドの値をインスタンスの形の配列に直す。"""
    J = data.J
    build = np.array(
        [[sol[build_var(types, t, j)] for j in range(J)] for t in range(types.T)],
        dtype=float,
    ).reshape(types.T, J)
    flow = sol.array("net[{},{}]", (data.F, J))
    built = build > 0.5
    selected = np.where(built.any(axis=0))[0].tolist()
    site_type = [int(np.argmax(built[:, j])) if built[:, j].any() else None for j in range(J)]
    return dict(
        f=np.array([sol[f] for f in OBJECTIVES], dtype=float),
        build=build,
        small=build[0],
        large=build[-1] if types.T > 1 else np.zeros(J),
        flow=flow,
        dist_city=sol.array("dist_city[{}]", (data.C,)),
        dist_lake=sol.array("dist_lake[{}]", (data.L,)),
        selected_sites=selected,
        site_type=site_type,
    )


def solve_siting(
    data: SitingData,
    types: FacilityTypes = FacilityTypes(),
    weights: Sequence[float] = WEIGHTS,
    big_m: Optional[float] = None,
    domain_diameter: float = UNIT_SQUARE_DIAMETER,
    backend: str = "pulp",
    pulp_solver: str = "CBC",
    time_limit: Optional[float] = None,
    log_level: str = "info",
) -> Dict[str, object]:
    """
    施設配置 MILP を組み立てて解き、結果の dict を返す:
      status, objective, f (f1..f4), build (T,J), small, large, flow (F,J),
      dist_city, dist_lake, selected_sites, site_type, big_m, time_sec,
      model, values
    """
    logger = FriendlyLogger(level=log_level)
    logger.header("多目的施設配置（MILP）を解きます")
    logger.step(
        f"農場 F = {data.F}, 都市 C = {data.C}, 水域 L = {data.L}, "
        f"候補地 J = {data.J}, 施設タイプ {list(types.names)}"
    )
    logger.step(
        "重み "
        + ", ".join(f"{OBJECTIVE_LABELS[n]}={w:+g}" for n, w in zip(OBJECTIVES, weights))
    )
    if big_m is None and domain_diameter == UNIT_SQUARE_DIAMETER and not data.in_unit_square():
        logger.warn("座標が単位正方形の外にあります。big-M は単位正方形の直径を前提にしています。")

    t0 = time.time()
    spec = build_siting_model(
        data, types, weights, big_m=big_m, domain_diameter=domain_diameter
    )
    m_values = siting_big_m(types, big_m, domain_diameter)
    logger.debug(f"big-M: {m_values}")
    logger.debug(f"モデル: {spec.stats()}")

    sol = solve_model(
        spec,
        backend=backend,
        pulp_solver=pulp_solver,
        time_limit=time_limit,
        log_level=log_level,
    )
    res = extract_solution(data, types, sol)

    logger.done("求解完了")
    logger.step(
        "✨ 目的値 = {:.6f} / f = [{}]".format(
            sol.objective, ", ".join(f"{v:.4f}" for v in res["f"])
        )
    )
    logger.step(
        "🏭 建設: "
        + (
            ", ".join(f"{j}:{types.names[res['site_type'][j]]}" for j in res["selected_sites"])
            or "なし"
        )
    )

    res.update(
        status=sol.status,
        objective=sol.objective,
        big_m=m_values,
        time_sec=time.time() - t0,
        model=spec,
        values=sol.values,
    )
    return res


if __name__ == "__main__":
    from mo_siting.plotting import plot_siting
    from mo_siting.report import print_summary

    types = FacilityTypes()
    data = make_random_instance(seed=0)
    result = solve_siting(data, types, WEIGHTS, log_level="info")
    print_summary(data, result, types, WEIGHTS)
    plot_siting(data, result, types)
