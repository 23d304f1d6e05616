# report.py
# Console tables for a solved siting run (pandas).

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np
import pandas as pd

from mo_siting.instance import FacilityTypes, SitingData
from mo_siting.siting import OBJECTIVE_LABELS, OBJECTIVES, WEIGHTS


def objective_frame(result: Dict[str, object], weights: Sequence[float]) -> pd.DataFrame:
    """One row per objective component with its weighted contribution."""
    f = np.asarray(result["f"], dtype=float)
    df = pd.DataFrame(
        {
            "component": [OBJECTIVE_LABELS[n] for n in OBJECTIVES],
            "value": f,
            "weight": np.asarray(weights, dtype=float),
        },
        index=pd.Index(OBJECTIVES, name="f"),
    )
    df["weighted"] = df["value"] * df["weight"]
    return df


def site_frame(
    data: SitingData, result: Dict[str, object], types: FacilityTypes = FacilityTypes()
) -> pd.DataFrame:
    """One row per candidate site: location, built type, inbound flow, utilisation."""
    flow = np.asarray(result["flow"], dtype=float)
    inbound = flow.sum(axis=0)
    built = [None if t is None else types.names[t] for t in result["site_type"]]
    cap = np.array(
        [0.0 if t is None else types.capacity[t] for t in result["site_type"]], dtype=float
    )
    with np.errstate(divide="ignore", invalid="ignore"):
        util = np.where(cap > 0, inbound / np.where(cap > 0, cap, 1.0), np.nan)
    df = pd.DataFrame(
        {
            "x": data.cand[:, 0],
            "y": data.cand[:, 1],
            "built": pd.Series(built, dtype=object),
            "inbound": inbound,
            "capacity": cap,
            "utilisation": util,
        }
    )
    df.index.name = "site"
    return df


def flow_frame(result: Dict[str, object], tol: float = 1e-6) -> pd.DataFrame:
    """Tidy (farm, site, fraction) rows for every flow above tol."""
    flow = np.asarray(result["flow"], dtype=float)
    ii, jj = np.where(flow > tol)
    return pd.DataFrame({"farm": ii, "site": jj, "fraction": flow[ii, jj]})


def print_summary(
    data: SitingData,
    result: Dict[str, object],
    types: FacilityTypes = FacilityTypes(),
    weights: Sequence[float] = WEIGHTS,
):
    print(f"\n=== RESULT ({result.get('status')}) ===")
    print("Objective (weighted sum):", result.get("objective"))
    print("\nObjective vector:")
    print(objective_frame(result, weights).round(4).to_string())
    sites = site_frame(data, result, types)
    print("\nBuilt sites:")
    print(sites[sites["built"].notna()].round(4).to_string())
    print("\nFlows:")
    print(flow_frame(result).round(4).to_string(index=False))
