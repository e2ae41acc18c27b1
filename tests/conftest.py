import datetime as _dt
import random

import pytest

from toy_raffle.session import SessionController
from toy_raffle.storage import StateFiles, save_catalog


FIXED_NOW = _dt.datetime(2024, 3, 5, 14, 7, 9)


@pytest.fixture
def files(tmp_path):
    return StateFiles(directory=tmp_path)


@pytest.fixture
def open_session(files):
    def _open(toys=None, *, seed=1234, **kwargs):
        if toys is not None:
            save_catalog(files, toys)
        return SessionController.open(files, rng=random.Random(seed), clock=lambda: FIXED_NOW, **kwargs)

    return _open
