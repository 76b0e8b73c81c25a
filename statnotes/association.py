"""
ASSOCIATION RULES — Paradigm: FREQUENT ITEMSETS

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Given shopping baskets, find rules of the form

    {yogurt} ⇒ {whole milk}

"customers who buy the left side tend to also buy the right side".

    support(X)        = fraction of baskets containing X
    confidence(X ⇒ Y) = support(X ∪ Y) / support(X)
                        (estimate of P(Y | X))
    lift(X ⇒ Y)       = confidence / support(Y)
                        (> 1: X makes Y MORE likely than usual)
    coverage(X ⇒ Y)   = support(X)

Confidence alone is misleading: a rule pointing at a very popular
item is "confident" even when X tells us nothing. Lift corrects for
the base rate.

===============================================================
THE APRIORI PRINCIPLE
===============================================================

Every subset of a frequent itemset is frequent (DOWNWARD CLOSURE).
So build itemsets level by level:

    1. Count single items; keep those with support ≥ min_support.
    2. Candidates of size k = unions of frequent (k-1)-itemsets,
       dropping any candidate with an infrequent (k-1)-subset.
    3. Count the survivors, keep the frequent ones, repeat.

Most of the exponential search space is never counted.

===============================================================
"""

from itertools import combinations

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import make_baskets


def transaction_matrix(baskets):
    """Boolean baskets × items table, items as sorted columns."""
    baskets = [frozenset(b) for b in baskets]
    if not baskets:
        raise ValueError("Need at least one basket")
    items = sorted(set().union(*baskets))
    data = [[item in b for item in items] for b in baskets]
    return pd.DataFrame(data, columns=items, dtype=bool)


def apriori(baskets, min_support=0.01, max_len=None):
    """
    Frequent itemsets by level-wise search.

    Returns a DataFrame with columns itemset (frozenset), support and
    count, ordered by itemset size and then by decreasing support.
    """
    if not 0 < min_support <= 1:
        raise ValueError(f"min_support must be in (0, 1], got {min_support}")

    matrix = transaction_matrix(baskets)
    n = len(matrix)
    columns = {item: matrix[item].to_numpy() for item in matrix.columns}

    def count(itemset):
        present = np.ones(n, dtype=bool)
        for item in itemset:
            present &= columns[item]
        return int(present.sum())

    rows = []
    level = {}
    for item in matrix.columns:
        c = count([item])
        if c / n >= min_support:
            level[frozenset([item])] = c

    size = 1
    while level:
        rows.extend({'itemset': s, 'support': c / n, 'count': c, '_size': size}
                    for s, c in level.items())
        if max_len is not None and size >= max_len:
            break

        frequent = list(level)
        candidates = set()
        for a, b in combinations(frequent, 2):
            union = a | b
            if len(union) == size + 1:
                if all(frozenset(sub) in level for sub in combinations(union, size)):
                    candidates.add(union)

        size += 1
        level = {}
        for candidate in candidates:
            c = count(candidate)
            if c / n >= min_support:
                level[candidate] = c

    table = pd.DataFrame(rows, columns=['itemset', 'support', 'count', '_size'])
    table = table.sort_values(['_size', 'support'], ascending=[True, False])
    return table.drop(columns='_size').reset_index(drop=True)


def association_rules(itemsets, min_confidence=0.5):
    """
    Rules X ⇒ {y} with a single item on the right, from apriori output.

    Returns lhs, rhs, support, confidence, lift, coverage and count,
    sorted by decreasing lift.
    """
    support = dict(zip(itemsets['itemset'], itemsets['support']))
    counts = dict(zip(itemsets['itemset'], itemsets['count']))

    rows = []
    for itemset, supp in support.items():
        if len(itemset) < 2:
            continue
        for item in itemset:
            rhs = frozenset([item])
            lhs = itemset - rhs
            confidence = supp / support[lhs]
            if confidence < min_confidence:
                continue
            rows.append({
                'lhs': lhs,
                'rhs': rhs,
                'support': supp,
                'confidence': confidence,
                'lift': confidence / support[rhs],
                'coverage': support[lhs],
                'count': counts[itemset],
            })

    columns = ['lhs', 'rhs', 'support', 'confidence', 'lift', 'coverage', 'count']
    rules = pd.DataFrame(rows, columns=columns)
    return rules.sort_values('lift', ascending=False).reset_index(drop=True)


def rules_with(rules, rhs=None, lhs=None):
    """
    Rules whose right side is rhs and whose left side contains lhs.

    Either argument may be a single item or a collection of items.
    """
    def as_set(items):
        return frozenset([items]) if isinstance(items, str) else frozenset(items)

    mask = pd.Series(True, index=rules.index)
    if rhs is not None:
        target = as_set(rhs)
        mask &= rules['rhs'].apply(lambda s: target <= s)
    if lhs is not None:
        target = as_set(lhs)
        mask &= rules['lhs'].apply(lambda s: target <= s)
    return rules[mask]


def format_rule(lhs, rhs):
    return '{' + ', '.join(sorted(lhs)) + '} => {' + ', '.join(sorted(rhs)) + '}'


def inspect(rules, n=10):
    """Rules as readable text, one per row."""
    shown = rules.head(n).copy()
    shown.insert(0, 'rule', [format_rule(l, r) for l, r in zip(shown['lhs'], shown['rhs'])])
    return shown.drop(columns=['lhs', 'rhs'])


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_item_frequency():
    """Most common items."""
    print("\n" + "="*60)
    print("ITEM FREQUENCIES")
    print("="*60)
    matrix = transaction_matrix(make_baskets())
    freq = matrix.mean().sort_values(ascending=False)
    print(f"{len(matrix)} baskets, {matrix.shape[1]} items, "
          f"mean basket size {matrix.sum(axis=1).mean():.2f}")
    print(freq.head(10).round(3).to_string())


def demo_rules():
    """Mine the baskets and show the strongest rules."""
    print("\n" + "="*60)
    print("MINING RULES")
    print("="*60)

    baskets = make_baskets()
    itemsets = apriori(baskets, min_support=0.02)
    print(f"{len(itemsets)} frequent itemsets at support ≥ 0.02")
    rules = association_rules(itemsets, min_confidence=0.3)
    print(f"{len(rules)} rules at confidence ≥ 0.3\n")
    print(inspect(rules, 8).round(3).to_string(index=False))

    print("\nRules that end in whole milk:")
    print(inspect(rules_with(rules, rhs='whole milk'), 5).round(3).to_string(index=False))
    return rules


def ablation_support():
    """Threshold vs number of itemsets."""
    print("\n" + "="*60)
    print("ABLATION: min_support")
    print("="*60)
    baskets = make_baskets()
    for s in [0.2, 0.1, 0.05, 0.02, 0.01]:
        itemsets = apriori(baskets, min_support=s)
        rules = association_rules(itemsets, min_confidence=0.3)
        print(f"  support ≥ {s:<5} itemsets={len(itemsets):>4}  rules={len(rules):>4}")
    print("→ Lower support explodes the search; downward closure keeps it tractable.")


def visualize_rules():
    """Support vs confidence, colored by lift."""
    rules = association_rules(apriori(make_baskets(), min_support=0.02), min_confidence=0.1)

    fig, ax = plt.subplots(1, 1, figsize=(8, 6))
    sc = ax.scatter(rules['support'], rules['confidence'], c=rules['lift'],
                    cmap='viridis', s=40, alpha=0.8)
    fig.colorbar(sc, ax=ax, label='lift')
    for _, rule in rules.head(3).iterrows():
        ax.annotate(format_rule(rule['lhs'], rule['rhs']),
                    (rule['support'], rule['confidence']), fontsize=8)
    ax.set_xlabel('support')
    ax.set_ylabel('confidence')
    ax.set_title('Association rules')
    return fig


if __name__ == '__main__':
    print("="*60)
    print("ASSOCIATION RULES — FREQUENT ITEMSETS")
    print("="*60)

    demo_item_frequency()
    demo_rules()
    ablation_support()

    config.save_figure(visualize_rules(), 'association_rules')
