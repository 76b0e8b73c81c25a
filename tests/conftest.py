import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pytest

from statnotes import config


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    """Send figures to a temporary directory."""
    monkeypatch.setattr(config, 'OUTPUT_DIR', tmp_path / 'figures')
    return tmp_path / 'figures'


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')
