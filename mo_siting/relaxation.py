# relaxation.py
# 「ある地点から最寄りの建設済み施設までの重みつき距離」の big-M 線形化

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from mo_siting.instance import UNIT_SQUARE_DIAMETER
from mo_siting.model import ModelRow, ModelVar, lin


def default_big_m(weights: Sequence[float], domain_diameter: float = UNIT_SQUARE_DIAMETER) -> float:
    """座標領域内で取りうる重みつき距離の最大値。"""
    return float(domain_diameter) * float(max(weights))


def nearest_facility_relaxation(
    aux_name: str,
    distances: Sequence[float],
    build_vars: Sequence[Sequence[str]],
    weights: Sequence[float],
    big_m: Optional[float] = None,
    domain_diameter: float = UNIT_SQUARE_DIAMETER,
    row_prefix: Optional[str] = None,
) -> Tuple[ModelVar, Tuple[ModelRow, ...], float]:
    """
    建設済みの各サイトまでの重みつき距離で上から抑えた補助変数。

    候補地 j ごとに（b[t][j] は「j にタイプ t を建設」の 0/1 変数）:

        aux <= d_j * sum_t w_t b[t][j] + M * (1 - sum_t b[t][j])

    何も建てないサイトは aux <= M となり効かない。建てたサイトは
    aux <= d_j * w_t。aux 自体に上限はないので、目的関数が aux を押し上げる
    とき、建設済みサイト上の最小値、つまり最寄り施設までの重みつき距離に
    落ち着く。

    M の既定値は domain_diameter * max(weights)（単位正方形なら直径 sqrt(2)）。
    距離が直径を超えると既定の M では実行可能な値を切ってしまうので
    ValueError を投げる。big_m を明示するとこの検査は行わない。

    戻り値: (補助変数, 緩和制約, M)
    """
    d = np.asarray(distances, dtype=float).reshape(-1)
    T = len(weights)
    if len(build_vars) != T:
        raise ValueError(f"{T} weights but {len(build_vars)} facility types of build variables")
    for t in range(T):
        if len(build_vars[t]) != d.shape[0]:
            raise ValueError(
                f"type {t}: {len(build_vars[t])} build variables for {d.shape[0]} distances"
            )

    if big_m is None:
        M = default_big_m(weights, domain_diameter)
        worst = float(d.max()) * float(max(weights)) if d.size else 0.0
        if worst > M + 1e-12:
            raise ValueError(
                f"{aux_name}: weighted distance {worst:.4g} exceeds big-M {M:.4g}; "
                f"coordinates leave the domain of diameter {domain_diameter:.4g}, "
                "pass domain_diameter or big_m explicitly"
            )
    else:
        M = float(big_m)

    prefix = row_prefix or aux_name
    aux = ModelVar(aux_name, lb=0.0, ub=None)
    rows = []
    for j in range(d.shape[0]):
        # aux - sum_t (d_j w_t - M) b[t][j] <= M
        terms = [(aux_name, 1.0)]
        terms += [(build_vars[t][j], -(d[j] * weights[t] - M)) for t in range(T)]
        rows.append(ModelRow(f"{prefix}[{j}]", lin(terms), "<=", M))
    return aux, tuple(rows), M
