# vim: fdm=indent
# author:     Fabio Zanini
# date:       15/10/26
# content:    Test AES-PCA on artificial data
import numpy as np
import pandas as pd
import pytest
from aespca import AESPCA, AESPCAResult, aespca, LarsError
from aespca.linalg_utils import sign_adjust


def make_data(n=50, p=5, seed=0):
    '''Centered data with well separated variances'''
    rs = np.random.RandomState(seed)
    scales = np.array([5, 3, 1, 0.5, 0.2])[:p]
    X = rs.randn(n, p) * scales
    X -= X.mean(axis=0)
    return X


def svd_directions(X, d):
    vt = np.linalg.svd(X.T @ X)[2]
    return sign_adjust(vt[:d].T)


def failing_solver(sigma0, b0, n, **kwargs):
    raise LarsError('LARS did not converge')


def test_well_separated():
    X = make_data()
    res = aespca(X, n_pcs=2, max_iter=10, eps_conv=1e-3)

    assert(isinstance(res, AESPCAResult))
    assert(res.usable)
    assert(not res.fallback)
    assert(1 <= res.n_iter <= 10)

    for mat in (res.aes_loadings, res.svd_loadings):
        assert(mat.shape == (5, 2))
        assert(list(mat.columns) == ['PC1', 'PC2'])
    for mat in (res.aes_scores, res.svd_scores):
        assert(mat.shape == (50, 2))

    norms = np.sqrt((res.aes_loadings.values**2).sum(axis=0))
    assert(np.allclose(norms, 1))

    assert(np.allclose(res.aes_scores.values, X @ res.aes_loadings.values))
    assert(np.allclose(res.svd_scores.values, X @ res.svd_loadings.values))
    assert(np.allclose(res.svd_loadings.values, svd_directions(X, 2)))


def test_sign_convention_one_component():
    X = make_data(seed=1)
    res = aespca(X, n_pcs=1)

    assert(not res.fallback)
    assert(res.svd_loadings.values[0, 0] >= 0)
    assert(res.aes_loadings.values[0, 0] >= 0)
    assert((res.aes_loadings.values[:, 0] @ res.svd_loadings.values[:, 0]) > 0)


def test_no_iterations():
    X = make_data()
    res1 = aespca(X, n_pcs=2, max_iter=0)
    res2 = aespca(X, n_pcs=2, max_iter=0)

    assert(res1.n_iter == 0)
    assert(not res1.converged)
    assert(np.array_equal(res1.aes_loadings.values, svd_directions(X, 2)))
    assert(np.array_equal(res1.aes_loadings.values, res1.svd_loadings.values))
    assert(np.array_equal(res1.aes_loadings.values, res2.aes_loadings.values))
    assert(np.array_equal(res1.aes_scores.values, res2.aes_scores.values))


def test_solver_failure():
    X = make_data()

    with pytest.warns(UserWarning, match='Using SVD instead'):
        res = aespca(X, n_pcs=2, solver=failing_solver)

    assert(res.usable)
    assert(res.fallback)
    assert(not res.converged)
    assert(res.n_iter == 1)
    assert(np.array_equal(res.aes_loadings.values, res.svd_loadings.values))
    assert(np.allclose(res.aes_loadings.values, svd_directions(X, 2)))
    assert(np.allclose(res.aes_scores.values, X @ res.aes_loadings.values))


def test_solver_failure_discards_other_components():
    X = make_data()
    calls = []

    # Round 1 succeeds with a sparse solution, component 2 fails in round 2
    def solver(sigma0, b0, n, **kwargs):
        calls.append(b0)
        if len(calls) == 4:
            raise LarsError('LARS did not converge')
        beta = b0.copy()
        beta[-1] = 0
        return beta

    with pytest.warns(UserWarning, match='Using SVD instead'):
        res = aespca(X, n_pcs=2, solver=solver, eps_conv=0)

    assert(len(calls) == 4)
    assert(res.fallback)
    assert(res.n_iter == 2)
    assert(np.allclose(res.aes_loadings.values, svd_directions(X, 2)))
    # the sparse zero of round 1 is gone
    assert((res.aes_loadings.values[-1] != 0).all())


def test_solver_not_finite():
    X = make_data()

    def solver(sigma0, b0, n, **kwargs):
        return np.full(len(b0), np.nan)

    with pytest.warns(UserWarning, match='Using SVD instead'):
        res = aespca(X, n_pcs=1, solver=solver)

    assert(res.fallback)
    assert(np.isfinite(res.aes_loadings.values).all())


def test_solver_arguments():
    X = make_data()
    calls = []

    def solver(sigma0, b0, n, adaptive=True, type='lasso', para=None):
        calls.append({
            'sigma0': sigma0,
            'n': n,
            'adaptive': adaptive,
            'type': type,
            'para': para,
            })
        return b0.copy()

    aespca(X, n_pcs=2, adaptive=False, para=[0.1, 0.2], solver=solver)

    assert(len(calls) >= 2)
    assert([c['para'] for c in calls[:2]] == [0.1, 0.2])
    for c in calls:
        assert(c['n'] == 50)
        assert(c['adaptive'] is False)
        assert(c['type'] == 'lasso')
        assert(np.allclose(c['sigma0'], X.T @ X))


def test_sparse_solution():
    X = make_data()

    def solver(sigma0, b0, n, **kwargs):
        beta = 2 * b0
        beta[-1] = 0
        return beta

    res = aespca(X, n_pcs=2, solver=solver)

    assert(not res.fallback)
    assert((res.aes_loadings.values[-1] == 0).all())
    norms = np.sqrt((res.aes_loadings.values**2).sum(axis=0))
    assert(np.allclose(norms, 1))
    assert(np.allclose(res.aes_scores.values, X @ res.aes_loadings.values))


def test_converged_on_normalized_loadings():
    X = make_data()
    fixed = np.array([3.0, 1.0, 0.0, 0.0, 1.0])

    # same direction every round, but never unit norm
    def solver(sigma0, b0, n, **kwargs):
        return fixed.copy()

    res = aespca(X, n_pcs=1, solver=solver)

    assert(res.converged)
    assert(res.n_iter == 2)
    assert(np.allclose(res.aes_loadings.values[:, 0], fixed / np.sqrt(11)))


def test_zero_loadings():
    X = make_data()

    def solver(sigma0, b0, n, **kwargs):
        return np.zeros(len(b0))

    res = aespca(X, n_pcs=2, solver=solver)

    assert(not res.fallback)
    assert(res.converged)
    assert((res.aes_loadings.values == 0).all())
    assert((res.aes_scores.values == 0).all())


def test_iteration_budget():
    X = make_data()
    rs = np.random.RandomState(3)

    def solver(sigma0, b0, n, **kwargs):
        return rs.randn(len(b0))

    res = aespca(X, n_pcs=2, max_iter=3, eps_conv=1e-12, solver=solver)

    assert(res.n_iter == 3)
    assert(not res.converged)
    assert(not res.fallback)


def test_dataframe_labels():
    X = make_data()
    features = ['INS', 'GCG', 'PPY', 'SST', 'GHRL']
    samples = ['cell{:}'.format(i + 1) for i in range(X.shape[0])]
    df = pd.DataFrame(X, index=samples, columns=features)

    res = aespca(df, n_pcs=2)

    assert(list(res.aes_loadings.index) == features)
    assert(list(res.svd_loadings.index) == features)
    assert(list(res.aes_scores.index) == samples)
    assert(list(res.svd_scores.columns) == ['PC1', 'PC2'])
    assert(set(res.as_dict().keys()) == {'aesLoad', 'oldLoad', 'aesScore', 'oldScore'})


def test_unusable():
    X = make_data()
    X[3, 2] = np.nan

    with pytest.warns(UserWarning):
        res = aespca(X, n_pcs=2)

    assert(not res.usable)
    assert(res.aes_loadings.shape == (5, 2))
    assert(res.svd_loadings.shape == (5, 2))
    assert(res.aes_scores.shape == (50, 2))
    assert(res.svd_scores.shape == (50, 2))
    for mat in res.as_dict().values():
        assert(mat.isnull().values.all())


def test_one_sample():
    X = np.array([[0.5, -1.0, 2.0]])

    res = aespca(X, n_pcs=1)

    assert(res.aes_loadings.shape == (3, 1))
    assert(res.aes_scores.shape == (1, 1))
    if res.usable:
        assert(np.isfinite(res.aes_loadings.values).all())
        assert(np.allclose(res.aes_scores.values, X @ res.aes_loadings.values))


def test_refit_unusable():
    X = make_data()
    model = AESPCA(n_pcs=2, solver=failing_solver)

    with pytest.warns(UserWarning, match='Using SVD instead'):
        model.fit(X)
    assert(model.fallback)
    assert(model.n_iter == 1)

    X[0, 0] = np.nan
    with pytest.warns(UserWarning):
        model.fit(X)

    assert(not model.result.usable)
    assert(model.loadings_aes is None)
    assert(model.directions_svd is None)
    assert(not model.fallback)
    assert(model.n_iter == 0)
    assert(not model.converged)


def test_fit_transform():
    X = make_data()
    model = AESPCA(n_pcs=2)
    scores = model.fit_transform(X)

    assert(scores.shape == (50, 2))
    assert(model.result.aes_scores is scores)

    # refitting does not carry state over
    model.fit(X[:30])
    assert(model.result.aes_scores.shape == (30, 2))


def test_arguments():
    X = make_data()

    with pytest.raises(ValueError):
        aespca(X, n_pcs=0)

    with pytest.raises(ValueError):
        aespca(X, n_pcs=6)

    with pytest.raises(ValueError):
        aespca(X, n_pcs=1.5)

    with pytest.raises(ValueError):
        aespca(X, n_pcs=2, para=[0.1])

    with pytest.raises(ValueError):
        aespca(X, max_iter=-1)

    with pytest.raises(ValueError):
        aespca(X[:, 0])
