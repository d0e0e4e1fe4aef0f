# vim: fdm=indent
# author:     Fabio Zanini
# date:       14/10/26
# content:    Sparse directions via LARS on a least squares approximation
__all__ = ['lars_lsa', 'LarsError']

import numpy as np
from sklearn.linear_model import lars_path_gram


class LarsError(RuntimeError):
    '''The LARS path could not be computed for this direction'''
    pass


def lars_lsa(
        sigma0,
        b0,
        n,
        adaptive=True,
        type='lasso',
        para=None,
        eps=np.finfo(float).eps,
        ):
    '''Sparse approximation of a direction given a Gram matrix

    Args:
        sigma0 (ndarray): p x p Gram (covariance-like) matrix.
        b0 (ndarray): initial direction of length p. This is the unpenalized
         estimate the sparse solution approximates.
        n (int): sample size, used in the BIC.
        adaptive (bool): use adaptive LASSO weights |b0|.
        type (str): 'lasso' (default) or 'lar'.
        para (None or float): additional ridge (elastic-net) penalty on the
         diagonal of the Gram matrix.
        eps (float): coefficients below this are counted as zero.

    Returns:
        ndarray of length p with the BIC-optimal coefficients on the path.

    Raises:
        LarsError: if the path cannot be computed or is not finite.


    The least squares approximation (Wang and Leng 2007) replaces the loss
    with (beta - b0)^T Sigma (beta - b0), which LARS can solve from the Gram
    matrix alone: Gram = Sigma and X^T y = Sigma b0.
    '''
    if type not in ('lasso', 'lar'):
        raise ValueError('type must be one of "lasso" and "lar"')

    sigma0 = np.asarray(sigma0, dtype=float)
    b0 = np.asarray(b0, dtype=float).ravel()
    p = len(b0)
    if sigma0.shape != (p, p):
        raise ValueError('Gram matrix and direction dimensions do not match')

    if para is None:
        para = 0
    if para < 0:
        raise ValueError('para must be None or a non-negative number')

    if not (np.isfinite(sigma0).all() and np.isfinite(b0).all()):
        raise LarsError('Gram matrix or direction are not finite')

    # Adaptive weights: rescale so that every coefficient is shrunk
    # proportionally to 1 / |b0|
    if adaptive:
        weights = np.abs(b0)
        sigma = sigma0 * np.outer(weights, weights)
        b = np.sign(b0)
    else:
        weights = np.ones(p)
        sigma = sigma0.copy()
        b = b0.copy()

    xy = sigma @ b
    gram = sigma + para * np.eye(p)

    try:
        alphas, active, coefs = lars_path_gram(
            xy,
            gram,
            n_samples=n,
            method='lar' if type == 'lar' else 'lasso',
            )
    except (ValueError, ArithmeticError) as e:
        raise LarsError('LARS path failed: {:}'.format(e)) from e

    if not np.isfinite(coefs).all():
        raise LarsError('LARS path is not finite')

    # BIC over the path
    resid = coefs - b[:, None]
    dev = np.einsum('ik,ij,jk->k', resid, sigma, resid)
    df = (np.abs(coefs) > eps).sum(axis=0)
    bic = dev + np.log(n) * df
    beta = coefs[:, np.argmin(bic)]

    # back to the original scale
    beta = beta * weights

    if not np.isfinite(beta).all():
        raise LarsError('Selected coefficients are not finite')

    return beta
