# plotting.py
# matplotlib renderings of the toy LP optimum and the siting solution.

from __future__ import annotations

import itertools
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from mo_siting.instance import FacilityTypes, SitingData


def _finish(fig, save: bool, save_prefix: str, save_ext: str, dpi: int, show: bool):
    fig.tight_layout()
    if save:
        fname = f"{save_prefix}.{save_ext}"
        fig.savefig(fname, dpi=dpi, bbox_inches="tight")
        print("save pic:", fname)
    if show:
        plt.show()
    return fig


def simplex_face(upper: float, rhs: float, n: int = 3) -> np.ndarray:
    """
    Vertices of {x : sum(x) = rhs, 0 <= x <= upper} in R^n (n = 3), ordered
    around their centroid so they can be drawn as one polygon.
    """
    pts = []
    for free in range(n):
        others = [k for k in range(n) if k != free]
        for bounds in itertools.product((0.0, upper), repeat=n - 1):
            v = np.zeros(n)
            v[others] = bounds
            v[free] = rhs - sum(bounds)
            if -1e-12 <= v[free] <= upper + 1e-12:
                pts.append(v)
    if not pts:
        return np.zeros((0, n))
    pts = np.unique(np.round(np.array(pts), 12), axis=0)
    c = pts.mean(axis=0)
    # basis of the plane sum(x) = rhs
    e1 = np.array([1.0, -1.0, 0.0]) / np.sqrt(2.0)
    e2 = np.array([1.0, 1.0, -2.0]) / np.sqrt(6.0)
    ang = np.arctan2((pts - c) @ e2, (pts - c) @ e1)
    return pts[np.argsort(ang)]


def plot_toy_lp(
    x: Sequence[float],
    upper: float = 2.0 / 3.0,
    rhs: float = 1.0,
    *,
    show: bool = True,
    save: bool = False,
    save_prefix: str = "toy_lp",
    save_ext: str = "png",
    dpi: int = 300,
):
    """
    3D view of the feasible face sum(x) = rhs inside the box [0, upper]^3 and
    the optimum x.
    """
    x = np.asarray(x, dtype=float)
    fig = plt.figure(figsize=(7, 6))
    ax = fig.add_subplot(111, projection="3d")

    face = simplex_face(upper, rhs)
    if len(face):
        ax.add_collection3d(
            Poly3DCollection([face], alpha=0.3, facecolor="tab:blue", edgecolor="tab:blue")
        )

    # 箱 [0, upper]^3 の辺
    corners = np.array(list(itertools.product((0.0, upper), repeat=3)))
    for a, b in itertools.combinations(corners, 2):
        if np.count_nonzero(a != b) == 1:
            ax.plot(*zip(a, b), color="gray", linewidth=0.8, linestyle="--")

    ax.scatter([x[0]], [x[1]], [x[2]], s=80, color="red", label="optimum", depthshade=False)
    ax.set_xlabel("x0")
    ax.set_ylabel("x1")
    ax.set_zlabel("x2")
    lim = max(upper, rhs)
    ax.set_xlim(0, lim)
    ax.set_ylim(0, lim)
    ax.set_zlim(0, lim)
    ax.set_title("Toy LP: feasible face and optimum")
    ax.legend()
    return _finish(fig, save, save_prefix, save_ext, dpi, show)


def plot_siting(
    data: SitingData,
    result: Dict[str, object],
    types: FacilityTypes = FacilityTypes(),
    *,
    flow_tol: float = 1e-6,
    show: bool = True,
    save: bool = False,
    save_prefix: str = "siting",
    save_ext: str = "png",
    dpi: int = 300,
    ax: Optional[plt.Axes] = None,
):
    """
    施設配置の可視化。

    農場・都市・水域・候補地を描き、建設した施設は丸で囲む（タイプ番号が
    大きいほど大きな丸）。flow_tol を超える 農場 → 施設 の流れは線で描き、
    線幅は流量の割合に比例させる。
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))
    else:
        fig = ax.figure

    flow = np.asarray(result["flow"], dtype=float)
    for i, j in zip(*np.where(flow > flow_tol)):
        ax.plot(
            [data.farms[i, 0], data.cand[j, 0]],
            [data.farms[i, 1], data.cand[j, 1]],
            color="tab:brown",
            alpha=0.6,
            linewidth=0.5 + 2.0 * flow[i, j],
            zorder=1,
        )

    ax.scatter(data.farms[:, 0], data.farms[:, 1], color="black", marker="x", label="Farms", zorder=3)
    if data.C:
        ax.scatter(data.cities[:, 0], data.cities[:, 1], color="tab:red", marker="s", s=80, label="Urban centres", zorder=3)
    if data.L:
        ax.scatter(data.lakes[:, 0], data.lakes[:, 1], color="tab:blue", marker="^", s=80, label="Water bodies", zorder=3)
    ax.scatter(data.cand[:, 0], data.cand[:, 1], color="gray", s=15, label="Candidate sites", zorder=2)

    site_type = result["site_type"]
    colors = plt.cm.Greens(np.linspace(0.5, 0.9, types.T))
    for t, name in enumerate(types.names):
        js = [j for j, st in enumerate(site_type) if st == t]
        if not js:
            continue
        ax.scatter(
            data.cand[js, 0],
            data.cand[js, 1],
            s=120 + 160 * t,
            facecolors="none",
            edgecolors=[colors[t]],
            linewidths=2,
            label=f"{name} facility",
            zorder=4,
        )

    f = result.get("f")
    title = "Facility siting"
    if f is not None:
        title += " (f = " + ", ".join(f"{v:.3f}" for v in f) + ")"
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title(title)
    ax.grid(True)
    ax.legend(loc="best", fontsize="small")
    ax.set_aspect("equal")
    return _finish(fig, save, save_prefix, save_ext, dpi, show)
