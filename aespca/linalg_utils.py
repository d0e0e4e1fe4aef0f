# vim: fdm=indent
# author:     Fabio Zanini
# date:       14/10/26
# content:    Linear algebra helpers for AES-PCA
__all__ = [
    'gram_matrix',
    'sign_adjust',
    'normalize',
    'max_abs_diff',
    'procrustes',
    ]

import numpy as np


def gram_matrix(X):
    # X -- n x p data matrix, already centered/scaled
    return X.T @ X


def sign_adjust(A):
    '''Flip the sign of every column whose first entry is negative

    This is Equation (2.4) of Efron et al (2003). It makes the direction of
    the singular vectors deterministic across runs.
    '''
    A = np.array(A, dtype=float, copy=True)
    flip = A[0] < 0
    A[:, flip] *= -1
    return A


def normalize(B):
    '''Normalize the columns of a matrix to unit Euclidean norm

    Args:
        B (ndarray): p x d matrix.

    Returns:
        a copy of B with unit norm columns. Columns that are all zero are
        left as they are.
    '''
    B = np.asarray(B, dtype=float)
    norms = np.sqrt((B**2).sum(axis=0))
    # zero columns would divide by zero
    norms[norms == 0] = 1
    return B / norms


def max_abs_diff(B1, B2):
    return np.abs(np.asarray(B1) - np.asarray(B2)).max()


def procrustes(M):
    '''Orthonormal matrix closest to M in Frobenius norm

    Args:
        M (ndarray): p x d matrix, d <= p.

    Returns:
        p x d matrix U @ Vt, where M = U S Vt is the thin SVD.
    '''
    u, s, vt = np.linalg.svd(M, full_matrices=False)
    return u @ vt
