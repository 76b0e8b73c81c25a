import numpy as np
import pandas as pd
import pytest

from statnotes.datasets import make_reviews
from statnotes.text import STOP_WORDS, create_pruned_vocabulary, make_matrix

DOCS = [
    'The movie was great',
    'This movie was awful',
    'A great cast and a great script',
    'I hated the ending',
]


def test_vocabulary_drops_stop_words_and_common_terms():
    vocab = create_pruned_vocabulary(DOCS)
    assert list(vocab.columns) == ['term', 'term_count', 'doc_count']
    terms = set(vocab['term'])
    assert not terms & set(STOP_WORDS)
    # in 2 of 4 documents: not more than half, so kept
    assert 'great' in terms
    assert 'hated' in terms
    great = vocab[vocab['term'] == 'great'].iloc[0]
    assert great['term_count'] == 3 and great['doc_count'] == 2
    assert vocab['term_count'].is_monotonic_decreasing


def test_vocabulary_prunes_terms_in_most_documents():
    docs = ['movie good', 'movie bad', 'movie fine', 'plot bad']
    terms = set(create_pruned_vocabulary(docs)['term'])
    assert 'movie' not in terms
    assert 'bad' in terms


def test_vocabulary_cap():
    vocab = create_pruned_vocabulary(DOCS, vocab_term_max=2)
    assert len(vocab) == 2


def test_vocabulary_needs_documents():
    with pytest.raises(ValueError):
        create_pruned_vocabulary([])


@pytest.mark.parametrize('texts', [
    ['great movie'],
    ['great movie', 'great movie'],
    ['the a an', 'this that those'],
])
def test_vocabulary_can_be_pruned_to_nothing(texts):
    vocab = create_pruned_vocabulary(texts)
    assert list(vocab.columns) == ['term', 'term_count', 'doc_count']
    assert len(vocab) == 0


def test_make_matrix_follows_vocabulary_order():
    vocab = pd.DataFrame({'term': ['script', 'great', 'unseen']})
    dtm = make_matrix(['Great great script', 'nothing here'], vocab)
    assert dtm.shape == (2, 3)
    assert np.array_equal(dtm.toarray(), [[1, 2, 0], [0, 0, 0]])
    assert np.array_equal(make_matrix(['great'], ['great']).toarray(), [[1]])


def test_review_filler_is_pruned():
    texts, labels = make_reviews(n_docs=300)
    vocab = create_pruned_vocabulary(texts)
    terms = set(vocab['term'])
    assert 'movie' not in terms
    assert 'great' in terms and 'boring' in terms
    dtm = make_matrix(texts, vocab)
    assert dtm.shape == (300, len(vocab))
    great = list(vocab['term']).index('great')
    counts = np.asarray(dtm[:, great].todense()).ravel()
    assert counts[labels == 1].mean() > counts[labels == 0].mean()


def test_demo_vocabulary(capsys):
    from statnotes.text import demo_vocabulary

    vocab = demo_vocabulary()
    assert len(vocab) > 0
    assert "dropped" in capsys.readouterr().out
