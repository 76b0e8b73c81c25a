import numpy as np
import pytest

from statnotes.spectral import (adjacency_matrix, algebraic_connectivity, cut_size,
                                degree_matrix, fiedler_vector, laplacian, ring_of_cliques,
                                spectral_bisect, spectral_clusters, toy_graph)


def test_adjacency_matrix_symmetric_and_ignores_self_loops():
    A = adjacency_matrix([(0, 1), (1, 1), (2, 0)], 3)
    assert np.array_equal(A, A.T)
    assert A[1, 1] == 0
    assert A.sum() == 4


def test_adjacency_matrix_bad_node():
    with pytest.raises(ValueError):
        adjacency_matrix([(0, 3)], 3)


def test_laplacian_rows_sum_to_zero():
    A, _ = toy_graph()
    L = laplacian(A)
    assert np.allclose(L.sum(axis=1), 0)
    assert np.allclose(L, degree_matrix(A) - A)
    assert np.allclose(np.diag(degree_matrix(A)), [2, 2, 3, 3, 2, 2])


def test_normalized_laplacian_has_unit_diagonal():
    A, _ = toy_graph()
    L = laplacian(A, normalized=True)
    assert np.allclose(np.diag(L), 1)
    assert np.all(np.linalg.eigvalsh(L) > -1e-10)
    assert np.all(np.linalg.eigvalsh(L) < 2 + 1e-10)


def test_laplacian_rejects_asymmetric():
    with pytest.raises(ValueError):
        laplacian(np.array([[0, 1], [0, 0]]))


def test_fiedler_vector_sign_and_split():
    A, _ = toy_graph()
    v = fiedler_vector(A)
    assert v[0] > 0
    assert np.allclose(np.linalg.norm(v), 1)
    labels = spectral_bisect(A)
    assert list(labels) == [1, 1, 1, 0, 0, 0]
    assert cut_size(A, labels) == 1


def test_fiedler_vector_needs_two_nodes():
    with pytest.raises(ValueError):
        fiedler_vector(np.zeros((1, 1)))


def test_algebraic_connectivity_zero_when_disconnected():
    A, edges = toy_graph()
    assert algebraic_connectivity(A) > 0
    A_cut = adjacency_matrix([e for e in edges if e != (2, 3)], 6)
    assert algebraic_connectivity(A_cut) == pytest.approx(0, abs=1e-10)


@pytest.mark.parametrize('normalized', [False, True])
def test_spectral_clusters_recovers_cliques(normalized):
    A, _ = ring_of_cliques(n_cliques=3, clique_size=5)
    labels = spectral_clusters(A, 3, normalized=normalized)
    truth = np.repeat([0, 1, 2], 5)
    assert len(set(zip(labels, truth))) == 3
    assert cut_size(A, labels) == 3


def test_spectral_clusters_bad_k():
    A, _ = toy_graph()
    with pytest.raises(ValueError):
        spectral_clusters(A, 7)


def test_visualize_spectral_returns_figure():
    from matplotlib.figure import Figure
    from statnotes.spectral import visualize_spectral

    assert isinstance(visualize_spectral(), Figure)
