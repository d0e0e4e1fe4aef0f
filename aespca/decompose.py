# vim: fdm=indent
# author:     Fabio Zanini
# date:       14/10/26
# content:    Adaptive, elastic-net, sparse principal component analysis
__all__ = ['AESPCA', 'AESPCAResult', 'aespca']

import warnings
import numpy as np
import pandas as pd
from .lars_lsa import lars_lsa, LarsError
from .linalg_utils import (
    gram_matrix,
    sign_adjust,
    normalize,
    max_abs_diff,
    procrustes,
    )


class AESPCAResult(object):
    '''Loadings and scores of an AES-PCA decomposition'''

    def __init__(
            self,
            aes_loadings,
            svd_loadings,
            aes_scores,
            svd_scores,
            usable=True,
            fallback=False,
            n_iter=0,
            converged=False,
            ):
        '''Package the output of AES-PCA

        Args:
            aes_loadings (pandas.DataFrame): p x d sparse loadings, features
             as rows and components (PC1, PC2, ...) as columns.
            svd_loadings (pandas.DataFrame): p x d loadings from the SVD.
            aes_scores (pandas.DataFrame): n x d projection of the samples
             onto the sparse loadings.
            svd_scores (pandas.DataFrame): n x d projection of the samples
             onto the SVD loadings.
            usable (bool): False if the Gram matrix could not be decomposed.
             In that case all matrices are filled with NaN and must not be
             used numerically.
            fallback (bool): True if the sparse solver failed and the SVD
             loadings were used instead of sparse ones.
            n_iter (int): number of refinement rounds.
            converged (bool): whether the loadings stabilized within
             the convergence threshold.
        '''
        self.aes_loadings = aes_loadings
        self.svd_loadings = svd_loadings
        self.aes_scores = aes_scores
        self.svd_scores = svd_scores
        self.usable = usable
        self.fallback = fallback
        self.n_iter = n_iter
        self.converged = converged

    @classmethod
    def unusable(cls, features, samples, n_pcs):
        '''NaN-filled result of the correct shape for a failed pathway'''
        columns = _component_names(n_pcs)
        p, n = len(features), len(samples)

        def filler(index, nrows):
            return pd.DataFrame(
                np.full((nrows, n_pcs), np.nan),
                index=index,
                columns=columns,
                )

        return cls(
            filler(features, p),
            filler(features, p),
            filler(samples, n),
            filler(samples, n),
            usable=False,
            )

    def as_dict(self):
        return {
            'aesLoad': self.aes_loadings,
            'oldLoad': self.svd_loadings,
            'aesScore': self.aes_scores,
            'oldScore': self.svd_scores,
            }

    def __repr__(self):
        p, d = self.aes_loadings.shape
        n = self.aes_scores.shape[0]
        return 'AESPCAResult(n={:}, p={:}, n_pcs={:}, usable={:}, fallback={:})'.format(
            n, p, d, self.usable, self.fallback)


def _component_names(n_pcs):
    return ['PC{:}'.format(i + 1) for i in range(n_pcs)]


class AESPCA(object):
    '''Adaptive, elastic-net, sparse PCA of a pathway design matrix'''

    def __init__(
            self,
            n_pcs=1,
            max_iter=10,
            eps_conv=1e-3,
            adaptive=True,
            para=None,
            solver=None,
            ):
        '''Prepare the decomposition

        Args:
            n_pcs (int): number of principal components to extract.

            max_iter (int): maximal number of rounds of sparse solves and
             Procrustes realignment.

            eps_conv (float): the refinement stops when no entry of the
             normalized sparse loadings moves more than this between rounds.

            adaptive (bool): use adaptive LASSO weights in the sparse solver.

            para (None or list of float): per-component hyperparameter for the
             sparse solver. If not None, it must have length n_pcs.

            solver (None or callable): sparse direction solver. It is called
             as solver(gram, direction, n, adaptive=..., type='lasso',
             para=...) and must return a coefficient vector with the length of
             direction, or raise LarsError on failure. None (default) uses
             aespca.lars_lsa.lars_lsa.


        The data matrix is expected to be centered and scaled already. If the
        number of features exceeds the number of samples the decomposition is
        an approximation and the sparse solver fails more readily, in which
        case the SVD loadings are returned instead (see AESPCAResult.fallback).
        '''
        self.n_pcs = n_pcs
        self.max_iter = max_iter
        self.eps_conv = eps_conv
        self.adaptive = adaptive
        self.para = para
        self.solver = solver

    def fit(self, X):
        '''Run AES-PCA on a data matrix

        Args:
            X (numpy.ndarray or pandas.DataFrame): n x p matrix with samples
             as rows and features as columns. If a DataFrame, the column
             names label the loadings and the index labels the scores.

        Returns:
            None, but this instance acquires the attribute `result`, an
            AESPCAResult.
        '''
        self.X = X

        # nothing from a previous fit survives
        self.directions_svd = None
        self.loadings_aes = None
        self.fallback = False
        self.n_iter = 0
        self.converged = False

        self._check_init_arguments()
        self.compute_gram()
        if self.svd_gram is None:
            warnings.warn(
                'Decomposition of the Gram matrix failed, returning an '
                'unusable result')
            self.result = AESPCAResult.unusable(
                self.features,
                self.samples,
                self.n_pcs,
                )
            return

        self.compute_initial_directions()
        self.refine_directions()
        self.compute_scores()

    def fit_transform(self, X):
        '''Run AES-PCA and return the sparse scores (n x n_pcs DataFrame)'''
        self.fit(X)
        return self.result.aes_scores

    def _check_init_arguments(self):
        X = self.X
        if isinstance(X, pd.DataFrame):
            self.features = X.columns
            self.samples = X.index
            matrix = X.values
        else:
            matrix = np.asarray(X)
            if matrix.ndim != 2:
                raise ValueError('X must be a 2D matrix')
            self.samples = pd.RangeIndex(matrix.shape[0])
            self.features = pd.RangeIndex(matrix.shape[1])
        self.matrix = matrix.astype(float)

        n, p = self.matrix.shape
        if (n < 1) or (p < 1):
            raise ValueError('X must have at least one sample and one feature')

        d = self.n_pcs
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)):
            raise ValueError('n_pcs must be an int')
        if (d < 1) or (d > p):
            raise ValueError(
                'n_pcs must be between 1 and the number of features ({:})'.format(p))

        if self.max_iter < 0:
            raise ValueError('max_iter must be >= 0')
        if self.eps_conv < 0:
            raise ValueError('eps_conv must be >= 0')

        if (self.para is not None) and (len(self.para) != d):
            raise ValueError('para must be None or have length n_pcs')

        if self.solver is None:
            self.solver_ = lars_lsa
        else:
            self.solver_ = self.solver

    def compute_gram(self):
        '''Compute the Gram matrix and its singular value decomposition

        Sets `svd_gram` to the right singular vectors of the Gram matrix as
        columns, sorted by decreasing singular value, or to None if the
        decomposition failed.
        '''
        self.gram = gram_matrix(self.matrix)
        try:
            if not np.isfinite(self.gram).all():
                raise np.linalg.LinAlgError('Gram matrix is not finite')
            u, s, vt = np.linalg.svd(self.gram)
        except np.linalg.LinAlgError:
            self.svd_gram = None
        else:
            self.svd_gram = vt.T

    def compute_initial_directions(self):
        '''Sign-adjusted first n_pcs eigenvectors of the Gram matrix'''
        self.directions_svd = sign_adjust(self.svd_gram[:, :self.n_pcs])

    def _solve_direction(self, direction, para):
        '''Sparse solve of one direction, None on failure'''
        try:
            beta = self.solver_(
                self.gram.copy(),
                direction,
                self.matrix.shape[0],
                adaptive=self.adaptive,
                type='lasso',
                para=para,
                )
        except (LarsError, ValueError, ArithmeticError):
            return None

        beta = np.asarray(beta, dtype=float).ravel()
        if (len(beta) != len(direction)) or (not np.isfinite(beta).all()):
            return None
        return beta

    def refine_directions(self):
        '''Alternate sparse solves and Procrustes realignment

        Each round solves every component independently, then rotates G @ B
        to the closest orthonormal matrix to get the directions for the next
        round. If any component fails in a round, all sparse progress is
        discarded and the SVD directions are used instead.
        '''
        d = self.n_pcs
        A = self.directions_svd.copy()
        B = A.copy()
        previous = A.copy()

        k = 0
        diff = 1.0
        fallback = False
        while (k < self.max_iter) and (diff > self.eps_conv):
            k += 1
            failed = np.zeros(d, bool)

            for i in range(d):
                para = None if self.para is None else self.para[i]
                beta = self._solve_direction(A[:, i], para)
                if beta is None:
                    failed[i] = True
                    continue
                B[:, i] = beta

            if failed.any():
                fallback = True
                break

            B2 = normalize(B)
            diff = max_abs_diff(B2, previous)
            previous = B2

            try:
                A = procrustes(self.gram @ B)
            except np.linalg.LinAlgError:
                fallback = True
                break

        if fallback:
            warnings.warn('LARS algorithm encountered an error. Using SVD instead.')
            B = sign_adjust(self.svd_gram[:, :d])
            self.directions_svd = B

        # the SVD directions are already unit norm, keep them bit for bit
        if fallback or (k == 0):
            self.loadings_aes = self.directions_svd.copy()
        else:
            self.loadings_aes = normalize(B)
        self.n_iter = k
        self.fallback = fallback
        self.converged = (not fallback) and (diff <= self.eps_conv)

    def compute_scores(self):
        '''Project the samples onto both sets of loadings'''
        columns = _component_names(self.n_pcs)
        matrix = self.matrix

        aes_loadings = pd.DataFrame(
            self.loadings_aes,
            index=self.features,
            columns=columns,
            )
        svd_loadings = pd.DataFrame(
            self.directions_svd,
            index=self.features,
            columns=columns,
            )
        aes_scores = pd.DataFrame(
            matrix @ self.loadings_aes,
            index=self.samples,
            columns=columns,
            )
        svd_scores = pd.DataFrame(
            matrix @ self.directions_svd,
            index=self.samples,
            columns=columns,
            )

        self.result = AESPCAResult(
            aes_loadings,
            svd_loadings,
            aes_scores,
            svd_scores,
            fallback=self.fallback,
            n_iter=self.n_iter,
            converged=self.converged,
            )


def aespca(
        X,
        n_pcs=1,
        max_iter=10,
        eps_conv=1e-3,
        adaptive=True,
        para=None,
        solver=None,
        ):
    '''Adaptive, elastic-net, sparse PCA of a data matrix

    Args:
        X (numpy.ndarray or pandas.DataFrame): n x p centered and scaled
         matrix, samples as rows and features as columns.
        n_pcs, max_iter, eps_conv, adaptive, para, solver: see AESPCA.

    Returns:
        AESPCAResult with the sparse and SVD loadings and scores. Numerical
        failures do not raise: check the `usable` and `fallback` attributes.
    '''
    model = AESPCA(
        n_pcs=n_pcs,
        max_iter=max_iter,
        eps_conv=eps_conv,
        adaptive=adaptive,
        para=para,
        solver=solver,
        )
    model.fit(X)
    return model.result
