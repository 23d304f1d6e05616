# instance.py
# 施設配置のインスタンス: 農場・都市・水域・候補地（単位正方形内）と、
# MILP が使うユークリッド距離行列

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

# サンプル notebook が使う単位正方形インスタンスの規模
N_FARMS = 22
N_CITIES = 4
N_LAKES = 6
N_CAND = 30
SEED = 0

# [0,1] x [0,1] 内の 2 点間距離の最大値
UNIT_SQUARE_DIAMETER = math.sqrt(2.0)

# PuLP は変数名中のこれらの文字を "_" に置き換える
_PULP_NAME_TRANS = str.maketrans("-+[] ->/", "________")

# 施設タイプ名以外にモデルが使う変数名
RESERVED_NAMES = ("net", "dist_city", "dist_lake", "f1", "f2", "f3", "f4")


def pairwise_dist(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """A の各行と B の各行のユークリッド距離 (n, m) 行列。"""
    A = np.asarray(A, dtype=float).reshape(-1, 2)
    B = np.asarray(B, dtype=float).reshape(-1, 2)
    return np.sqrt(((A[:, None, :] - B[None, :, :]) ** 2).sum(axis=2))


@dataclass(frozen=True)
class FacilityTypes:
    """
    候補地に建設できる施設タイプ。

    Attributes
    ----------
    names : tuple of str          # タイプ名（index 0 が最小）
    capacity : tuple of float     # 1 施設が受け入れる廃棄物量（単位）
    cost : tuple of float         # 建設費
    safety_weight : tuple of float  # 都市までの距離に掛ける重み
    water_weight : tuple of float   # 水域までの距離に掛ける重み
    """

    names: Tuple[str, ...] = ("small", "large")
    capacity: Tuple[float, ...] = (2.0, 10.0)
    cost: Tuple[float, ...] = (1.0, 3.0)
    safety_weight: Tuple[float, ...] = (1.0, 0.5)
    water_weight: Tuple[float, ...] = (1.0, 0.5)

    def __post_init__(self):
        T = len(self.names)
        if T == 0:
            raise ValueError("at least one facility type is required")
        for field in ("capacity", "cost", "safety_weight", "water_weight"):
            if len(getattr(self, field)) != T:
                raise ValueError(
                    f"FacilityTypes.{field} has {len(getattr(self, field))} entries, "
                    f"expected {T} (one per type in {self.names})"
                )
        if len(set(self.names)) != T:
            raise ValueError(f"duplicate facility type names: {self.names}")
        solver_names = [str(n).translate(_PULP_NAME_TRANS) for n in self.names]
        if not all(solver_names):
            raise ValueError(f"empty facility type name in {self.names}")
        if len(set(solver_names)) != T:
            raise ValueError(
                f"facility type names {self.names} collide once the solver replaces "
                f"\"-+[] ->/\" with \"_\": {solver_names}"
            )
        clash = [n for n, s in zip(self.names, solver_names) if s in RESERVED_NAMES]
        if clash:
            raise ValueError(
                f"facility type names {clash} are taken by model variables {RESERVED_NAMES}"
            )

    @property
    def T(self) -> int:
        return len(self.names)


class SitingData:
    """
    施設配置インスタンス 1 つ分のデータコンテナ。

    Attributes
    ----------
    farms : (F,2) array           # 廃棄物の発生源（各 1 単位）
    cities : (C,2) array          # 都市（安全性の目的）
    lakes : (L,2) array           # 水域（水質の目的）
    cand : (J,2) array            # 施設の候補地
    d_farm : (F,J) array          # 農場 → 候補地 の距離
    d_city : (C,J) array          # 都市 → 候補地 の距離
    d_lake : (L,J) array          # 水域 → 候補地 の距離
    """

    def __init__(
        self,
        farms: np.ndarray,
        cities: np.ndarray,
        lakes: np.ndarray,
        cand: np.ndarray,
    ):
        self.farms = np.asarray(farms, dtype=float).reshape(-1, 2)
        self.cities = np.asarray(cities, dtype=float).reshape(-1, 2)
        self.lakes = np.asarray(lakes, dtype=float).reshape(-1, 2)
        self.cand = np.asarray(cand, dtype=float).reshape(-1, 2)
        if self.farms.shape[0] == 0 or self.cand.shape[0] == 0:
            raise ValueError("an instance needs at least one farm and one candidate site")

        self.F = self.farms.shape[0]
        self.C = self.cities.shape[0]
        self.L = self.lakes.shape[0]
        self.J = self.cand.shape[0]

        self.d_farm = pairwise_dist(self.farms, self.cand)
        self.d_city = pairwise_dist(self.cities, self.cand)
        self.d_lake = pairwise_dist(self.lakes, self.cand)
        assert self.d_farm.shape == (self.F, self.J)
        assert self.d_city.shape == (self.C, self.J)
        assert self.d_lake.shape == (self.L, self.J)

    @staticmethod
    def from_coordinates(
        farms,
        cand,
        cities=None,
        lakes=None,
    ) -> "SitingData":
        """座標リストから生成。cities / lakes を省略すると 0 個扱い。"""
        empty = np.zeros((0, 2))
        return SitingData(
            farms=farms,
            cities=empty if cities is None else cities,
            lakes=empty if lakes is None else lakes,
            cand=cand,
        )

    def max_distance(self) -> float:
        mats = [m for m in (self.d_farm, self.d_city, self.d_lake) if m.size]
        return float(max(m.max() for m in mats)) if mats else 0.0

    def in_unit_square(self) -> bool:
        pts = np.vstack([self.farms, self.cities, self.lakes, self.cand])
        return bool(np.all((pts >= 0.0) & (pts <= 1.0)))

    def __repr__(self) -> str:
        return (
            f"SitingData(F={self.F}, C={self.C}, L={self.L}, J={self.J})"
        )


def make_random_instance(
    n_farms: int = N_FARMS,
    n_cities: int = N_CITIES,
    n_lakes: int = N_LAKES,
    n_cand: int = N_CAND,
    seed: Optional[Union[int, np.random.SeedSequence]] = SEED,
) -> SitingData:
    """
    [0,1] x [0,1] 上のランダムインスタンス。農場・都市・水域・候補地の順に
    引くので、同じ seed なら常に同じインスタンスになる。
    """
    rng = np.random.default_rng(seed)
    farms = rng.uniform(0, 1, size=(n_farms, 2))
    cities = rng.uniform(0, 1, size=(n_cities, 2))
    lakes = rng.uniform(0, 1, size=(n_lakes, 2))
    cand = rng.uniform(0, 1, size=(n_cand, 2))
    return SitingData(farms=farms, cities=cities, lakes=lakes, cand=cand)
