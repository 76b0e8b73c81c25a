"""
Shared settings for the lessons.

Paths can be redirected with environment variables:
    STATNOTES_OUTPUT_DIR  where figures are written (default ./figures)
    STATNOTES_DATA_DIR    where CSV/TSV inputs are read from (default ./data)
"""

import os
from pathlib import Path

import matplotlib.pyplot as plt

RANDOM_STATE = 42
FIGURE_DPI = 100

OUTPUT_DIR = Path(os.environ.get('STATNOTES_OUTPUT_DIR', 'figures'))
DATA_DIR = Path(os.environ.get('STATNOTES_DATA_DIR', 'data'))


def figure_path(name):
    """Path of the PNG for a figure name. Creates the output directory."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    return OUTPUT_DIR / f'{name}.png'


def save_figure(fig, name, dpi=FIGURE_DPI):
    """Save, close and report a figure."""
    path = figure_path(name)
    fig.savefig(path, dpi=dpi, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    print(f"Saved: {path}")
    return path
