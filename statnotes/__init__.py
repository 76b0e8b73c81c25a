"""
statnotes — classical statistical modeling, one lesson per module.

Run any lesson as a script to play its walkthrough:

    python -m statnotes.regression
    python -m statnotes.clustering

or all of them with `statnotes-gallery`.
"""

__version__ = '0.1.0'
