import numpy as np
from time import perf_counter
from treesplit import (LearnerConfig, RowSubsetView, SurrogateFinder, TreeData,
                       enable_logging, generate_candidates)

rng = np.random.default_rng(42)
n = 500
age = rng.uniform(18, 80, n)
income = age * 900 + rng.normal(0, 4000, n)
region = rng.choice(["north", "south", "east"], n)
y = np.where(age > 45, "senior", "junior")
age[rng.random(n) < 0.15] = np.nan

feats = ["age", "income", "region"]
X = np.empty((n, 3), dtype=object)
X[:, 0] = age
X[:, 1] = income
X[:, 2] = region

enable_logging("DEBUG")
data = TreeData.from_arrays(X, y, feature_names=feats, categorical_features=["region"])
view = RowSubsetView.from_table(data)
cfg = LearnerConfig(split_criterion="GainRatio", max_surrogates=2)

t0 = perf_counter()
cands = generate_candidates(data, view, cfg)
primary = max(cands, key=lambda c: c.gain)
split = SurrogateFinder.from_config(cfg).learn(primary, data.columns, view)
print(f"split: {perf_counter()-t0:.3f} s")

print("primary:", primary)
for s in split.surrogates:
    print(f"  {feats[s.column_index]:<8} agreement={s.agreement:.3f} association={s.association:.3f}")
left, right = split.child_markers
print(f"left={left.sum()} right={right.sum()} majority_left={split.majority_goes_left}")
print("left: ", split.left_condition.describe())
print("right:", split.right_condition.describe())
