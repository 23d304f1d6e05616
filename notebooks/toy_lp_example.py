#!/usr/bin/env python
# coding: utf-8

# ## 重みつき和のトイ LP

# In[1]:


from mo_siting import toy_lp
from mo_siting.plotting import plot_toy_lp


# In[ ]:


# x0, x1, x2 の重み（変えたら下のセルを再実行）
weights = (0.5, 0.2, 0.3)

result = toy_lp.solve_toy_lp(weights=weights, upper=2 / 3, rhs=1.0, sense="max")
print("x =", result["x"], " objective =", result["objective"])


# In[ ]:


plot_toy_lp(result["x"], upper=2 / 3, rhs=1.0)


# In[ ]:


# 同じ重みで最小化版（x0 + x1 + x2 >= 1）
result_min = toy_lp.solve_toy_lp(weights=weights, sense="min", log_level="quiet")
print("x =", result_min["x"], " objective =", result_min["objective"])
