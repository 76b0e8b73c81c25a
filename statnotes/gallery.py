"""
RUN ALL LESSONS
===============

Runs every lesson module as a script and reports which ones finished
and which figures each one wrote.

    python -m statnotes.gallery            # everything
    python -m statnotes.gallery pca svm    # just these
"""

import subprocess
import sys

from statnotes import config

LESSONS = [
    ('regression', 'Linear regression — Closed form + Gradient descent + Residuals'),
    ('lsq', 'Least squares — Normal equations + Projection + Collinearity'),
    ('logistic', 'Logistic regression — Odds + Deviance + Thresholds'),
    ('glm', 'GLM — Poisson + Binomial via IRLS'),
    ('gam', 'GAM — Penalized splines'),
    ('smoothing', 'Exponential smoothing — SES + Holt + Holt-Winters'),
    ('arima', 'ARIMA — ACF/PACF + Forecast intervals'),
    ('clustering', 'Clustering — K-means + Hierarchical + CH index'),
    ('spectral', 'Spectral graphs — Laplacian + Fiedler vector'),
    ('association', 'Association rules — Apriori + Lift'),
    ('svm', 'SVM — Kernels + Grid search'),
    ('pca', 'PCA — Variance explained + Loadings'),
    ('trees', 'Trees — Bagging + Random forest'),
    ('boosting', 'Gradient boosting — Rounds by CV'),
    ('text', 'Text — Pruned vocabulary + Document-term matrix'),
]

TIMEOUT = 600  # seconds per lesson


def _pngs():
    if not config.OUTPUT_DIR.exists():
        return set()
    return {p.name for p in config.OUTPUT_DIR.glob('*.png')}


def run_lesson(module, description, timeout=TIMEOUT):
    """Run one lesson module and wait for completion."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Module: statnotes.{module}")
    print('='*60)

    before = _pngs()
    try:
        result = subprocess.run(
            [sys.executable, '-m', f'statnotes.{module}'],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        print(f"✗ {module} timed out (>{timeout} s)")
        return False

    if result.returncode != 0:
        print(f"✗ {module} failed")
        print(f"  Error: {result.stderr[-500:]}")
        return False

    print(f"✓ {module} completed successfully")
    new = sorted(_pngs() - before)
    if new:
        print(f"  Generated: {', '.join(new)}")
    return True


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    known = dict(LESSONS)
    unknown = [m for m in argv if m not in known]
    if unknown:
        print(f"Unknown lessons: {', '.join(unknown)}")
        print(f"Choose from: {', '.join(known)}")
        return 2

    selected = [(m, d) for m, d in LESSONS if not argv or m in argv]

    print("="*60)
    print("RUNNING ALL LESSONS")
    print("="*60)

    results = {}
    for module, description in selected:
        results[module] = run_lesson(module, description)

    print("\n" + "="*60)
    print("SUMMARY")
    print("="*60)
    for module, ok in results.items():
        print(f"  {'✓' if ok else '✗'} {module}")
    n_ok = sum(results.values())
    print(f"\n{n_ok}/{len(results)} lessons completed")
    return 0 if n_ok == len(results) else 1


if __name__ == '__main__':
    sys.exit(main())
