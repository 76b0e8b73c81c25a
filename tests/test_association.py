import pytest

from statnotes.association import (apriori, association_rules, format_rule, inspect,
                                   rules_with, transaction_matrix)
from statnotes.datasets import make_baskets

BASKETS = [
    {'bread', 'milk'},
    {'bread', 'diapers', 'beer', 'eggs'},
    {'milk', 'diapers', 'beer', 'cola'},
    {'bread', 'milk', 'diapers', 'beer'},
    {'bread', 'milk', 'diapers', 'cola'},
]


def _support(itemsets, *items):
    row = itemsets[itemsets['itemset'] == frozenset(items)]
    return row['support'].iloc[0]


def test_transaction_matrix():
    matrix = transaction_matrix(BASKETS)
    assert list(matrix.columns) == sorted(matrix.columns)
    assert matrix.shape == (5, 6)
    assert matrix['bread'].sum() == 4
    assert matrix.dtypes.eq(bool).all()


def test_transaction_matrix_empty():
    with pytest.raises(ValueError):
        transaction_matrix([])


def test_apriori_supports():
    itemsets = apriori(BASKETS, min_support=0.6)
    assert list(itemsets.columns) == ['itemset', 'support', 'count']
    found = set(itemsets['itemset'])
    assert frozenset(['bread']) in found
    assert frozenset(['beer']) in found
    assert frozenset(['eggs']) not in found
    assert _support(itemsets, 'bread', 'milk') == pytest.approx(0.6)
    assert _support(itemsets, 'diapers', 'beer') == pytest.approx(0.6)
    assert all(s >= 0.6 for s in itemsets['support'])


def test_apriori_downward_closure():
    itemsets = apriori(BASKETS, min_support=0.4)
    found = set(itemsets['itemset'])
    for itemset in found:
        for item in itemset:
            if len(itemset) > 1:
                assert itemset - {item} in found


def test_apriori_max_len_and_order():
    itemsets = apriori(BASKETS, min_support=0.4, max_len=2)
    sizes = [len(s) for s in itemsets['itemset']]
    assert max(sizes) == 2
    assert sizes == sorted(sizes)


def test_apriori_bad_support():
    with pytest.raises(ValueError):
        apriori(BASKETS, min_support=0)


def test_association_rules_measures():
    rules = association_rules(apriori(BASKETS, min_support=0.4), min_confidence=0.5)
    assert list(rules.columns) == ['lhs', 'rhs', 'support', 'confidence', 'lift',
                                   'coverage', 'count']
    assert rules['lift'].is_monotonic_decreasing

    rule = rules[(rules['lhs'] == frozenset(['beer'])) &
                 (rules['rhs'] == frozenset(['diapers']))].iloc[0]
    assert rule['support'] == pytest.approx(0.6)
    assert rule['confidence'] == pytest.approx(1.0)
    assert rule['lift'] == pytest.approx(1 / 0.8)
    assert rule['coverage'] == pytest.approx(0.6)
    assert rule['count'] == 3
    assert all(len(r) == 1 for r in rules['rhs'])


def test_rules_with_filters():
    rules = association_rules(apriori(BASKETS, min_support=0.4), min_confidence=0.5)
    diapers = rules_with(rules, rhs='diapers')
    assert len(diapers) > 0
    assert all(r == frozenset(['diapers']) for r in diapers['rhs'])
    beer = rules_with(rules, lhs=['beer'])
    assert all('beer' in l for l in beer['lhs'])


def test_planted_rule_has_high_lift():
    rules = association_rules(apriori(make_baskets(), min_support=0.02), min_confidence=0.3)
    hits = rules_with(rules, rhs='other vegetables', lhs='root vegetables')
    assert hits['lift'].max() > 1.5


def test_format_and_inspect():
    assert format_rule({'b', 'a'}, {'c'}) == '{a, b} => {c}'
    rules = association_rules(apriori(BASKETS, min_support=0.4), min_confidence=0.5)
    shown = inspect(rules, n=3)
    assert len(shown) == 3
    assert shown.columns[0] == 'rule'
    assert 'lhs' not in shown.columns


def test_demo_rules_prints_rules(capsys):
    from statnotes.association import demo_rules

    rules = demo_rules()
    assert len(rules) > 0
    assert "=>" in capsys.readouterr().out
