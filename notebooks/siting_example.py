#!/usr/bin/env python
# coding: utf-8

# ## 廃棄物処理施設の配置（MILP, 4 目的）

# In[1]:


import numpy as np

from mo_siting.instance import FacilityTypes, make_random_instance
from mo_siting.plotting import plot_siting
from mo_siting.report import print_summary
from mo_siting.siting import solve_siting


# In[ ]:


data = make_random_instance(n_farms=22, n_cities=4, n_lakes=6, n_cand=30, seed=0)
types = FacilityTypes(
    names=("small", "large"),
    capacity=(2.0, 10.0),
    cost=(1.0, 3.0),
    safety_weight=(1.0, 0.5),
    water_weight=(1.0, 0.5),
)
print(data)


# In[ ]:


# 輸送, 安全性, 水質, 建設費
# 負の重み = その成分を最大化
weights = (0.1, -0.2, -0.3, 1.0)

result = solve_siting(data, types, weights, pulp_solver="CBC", log_level="info")


# In[ ]:


print_summary(data, result, types, weights)
print("flow per farm:", np.round(result["flow"].sum(axis=1), 6))


# In[ ]:


plot_siting(data, result, types)
