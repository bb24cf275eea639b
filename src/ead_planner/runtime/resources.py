# ead_planner/runtime/resources.py
from functools import lru_cache

from ead_planner.domain.ead.ead_base_rates import BaseRateTable


@lru_cache(maxsize=8)
def load_base_rate_table(file: str) -> BaseRateTable:
    # tables are read-only once loaded, so planners built from the same file share one
    return BaseRateTable.from_csv(file)
