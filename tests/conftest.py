import numpy as np
import pandas as pd
import pytest

import shelf_summers.config as config


@pytest.fixture(scope="session")
def project() -> config.ProjectConfig:
    return config.build_project_config()


def summer_dates(summer: int, *, start: str = "11-01", end: str = "02-28") -> pd.DatetimeIndex:
    """Daily dates of one austral summer, November to February by default."""
    return pd.date_range(
        "%d-%s" % (summer - 1, start), "%d-%s" % (summer, end), freq="D"
    )


def daily_series(
    summers,
    *,
    seed: int = 0,
    name: str = "Amery",
    start: str = "11-01",
    end: str = "02-28",
) -> pd.Series:
    rng = np.random.default_rng(seed)
    index = pd.DatetimeIndex(
        np.concatenate(
            [summer_dates(s, start=start, end=end).values for s in summers]
        )
    )
    return pd.Series(rng.standard_normal(len(index)), index=index, name=name)
