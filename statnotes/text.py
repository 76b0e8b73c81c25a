"""
DOCUMENT-TERM MATRICES — Paradigm: BAG OF WORDS

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

A model cannot read. Turn each document into a row of counts:

                great  boring  plot  ...
    review 1      2      0      1
    review 2      0      3      1

Word ORDER is lost; which words appear, and how often, is kept.
The result is huge and almost all zeros, so it is stored SPARSE.

===============================================================
PRUNING THE VOCABULARY
===============================================================

    lowercase, split into word tokens
    drop a tiny stop list: the a an this that those i you
    drop terms in MORE than half the documents (no signal)
    drop terms in FEWER than 0.1% of the documents (noise, typos)
    keep at most the 10,000 most frequent survivors

The vocabulary is learned on the TRAINING documents only; test
documents are mapped onto it, and unseen words are simply dropped.

===============================================================
"""

import numpy as np
import pandas as pd
from sklearn.feature_extraction.text import CountVectorizer

from statnotes.datasets import make_reviews, train_test_split
from statnotes.logistic import LogisticRegression
from statnotes.trees import accuracy_measures


STOP_WORDS = ['the', 'a', 'an', 'this', 'that', 'those', 'i', 'you']

# keep one-letter words so the stop list sees "a" and "i"
TOKEN_PATTERN = r'(?u)\b\w+\b'


def create_pruned_vocabulary(texts, doc_proportion_max=0.5, doc_proportion_min=0.001,
                             vocab_term_max=10000):
    """
    Vocabulary table for a training corpus.

    Returns a DataFrame with columns term, term_count and doc_count,
    most frequent term first.
    """
    texts = list(texts)
    if not texts:
        raise ValueError("Need at least one document")

    vectorizer = CountVectorizer(
        lowercase=True,
        token_pattern=TOKEN_PATTERN,
        stop_words=STOP_WORDS,
        max_df=doc_proportion_max,
        min_df=doc_proportion_min,
        max_features=vocab_term_max,
    )
    try:
        dtm = vectorizer.fit_transform(texts)
    except ValueError as e:
        # CountVectorizer refuses to return an empty vocabulary
        if 'no terms remain' in str(e) or 'empty vocabulary' in str(e):
            return pd.DataFrame({'term': pd.Series(dtype=object),
                                 'term_count': pd.Series(dtype=np.int64),
                                 'doc_count': pd.Series(dtype=np.int64)})
        raise

    vocab = pd.DataFrame({
        'term': vectorizer.get_feature_names_out(),
        'term_count': np.asarray(dtm.sum(axis=0)).ravel(),
        'doc_count': np.asarray((dtm > 0).sum(axis=0)).ravel(),
    })
    vocab = vocab.sort_values(['term_count', 'term'], ascending=[False, True])
    return vocab.reset_index(drop=True)


def make_matrix(texts, vocab):
    """
    Sparse document-term count matrix (scipy CSR).

    Columns follow the order of vocab['term'] (or of vocab itself when
    it is a plain list of terms).
    """
    terms = list(vocab['term']) if isinstance(vocab, pd.DataFrame) else list(vocab)
    vectorizer = CountVectorizer(lowercase=True, token_pattern=TOKEN_PATTERN,
                                 vocabulary=terms)
    return vectorizer.transform(list(texts))


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_vocabulary():
    """What survives pruning."""
    print("\n" + "="*60)
    print("PRUNED VOCABULARY")
    print("="*60)
    texts, _ = make_reviews()
    raw = CountVectorizer(token_pattern=TOKEN_PATTERN).fit(texts)
    vocab = create_pruned_vocabulary(texts)
    print(f"raw vocabulary: {len(raw.vocabulary_)} terms, pruned: {len(vocab)} terms")
    print(vocab.head(10).to_string(index=False))
    dropped = sorted(set(raw.vocabulary_) - set(vocab['term']))
    print(f"\ndropped: {dropped}")
    print("→ Filler words that show up in most reviews carry no signal.")
    return vocab


def demo_sentiment():
    """Bag-of-words logistic regression on the review corpus."""
    print("\n" + "="*60)
    print("SENTIMENT FROM WORD COUNTS")
    print("="*60)
    texts, labels = make_reviews(n_docs=600)
    texts = np.array(texts)
    X_tr_txt, X_te_txt, y_tr, y_te = train_test_split(texts, labels)

    vocab = create_pruned_vocabulary(X_tr_txt)
    dtm_train = make_matrix(X_tr_txt, vocab)
    dtm_test = make_matrix(X_te_txt, vocab)
    print(f"train matrix: {dtm_train.shape}, {dtm_train.nnz} nonzeros "
          f"({dtm_train.nnz / np.prod(dtm_train.shape):.1%} dense)")

    model = LogisticRegression(lr=0.5, n_iters=1000).fit(dtm_train.toarray(), y_tr)
    table = pd.concat([
        accuracy_measures(model.predict_proba(dtm_train.toarray()), y_tr, 'logistic, train'),
        accuracy_measures(model.predict_proba(dtm_test.toarray()), y_te, 'logistic, test'),
    ], ignore_index=True)
    print(table.round(3).to_string(index=False))

    weights = pd.Series(model.coef_, index=vocab['term']).sort_values()
    print("\nmost negative:", list(weights.index[:4]))
    print("most positive:", list(weights.index[-4:]))
    return table


if __name__ == '__main__':
    print("="*60)
    print("DOCUMENT-TERM MATRICES — BAG OF WORDS")
    print("="*60)

    demo_vocabulary()
    demo_sentiment()
