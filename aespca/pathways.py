# vim: fdm=indent
# author:     Fabio Zanini
# date:       16/10/26
# content:    AES-PCA of every pathway in an assay
__all__ = ['expressed_pathways', 'extract_aespcs']

import warnings
from collections import OrderedDict
import numpy as np
import pandas as pd
from anndata import AnnData
from .decompose import aespca


def expressed_pathways(features, pathways, min_features=3):
    '''Trim pathways to the features measured in the assay

    Args:
        features (list-like of str): the features (genes/proteins) measured
         in the assay.
        pathways (dict): pathway names as keys and lists of features as
         values.
        min_features (int): pathways with fewer features in the assay than
         this are dropped.

    Returns:
        OrderedDict with the surviving pathway names as keys and the list of
        their features in the assay as values, in the original order.
    '''
    features = set(features)

    trimmed = OrderedDict()
    n_dropped = 0
    for name, members in pathways.items():
        # Keep order, drop duplicates
        expressed = [f for f in pd.unique(pd.Series(list(members))) if f in features]
        if len(expressed) < min_features:
            n_dropped += 1
            continue
        trimmed[name] = expressed

    if n_dropped:
        warnings.warn(
            ('{0} pathways have fewer than {1} features in the assay '
             'and were dropped').format(n_dropped, min_features))

    return trimmed


def _assay_to_dataframe(assay):
    '''Samples as rows and features as columns'''
    if isinstance(assay, pd.DataFrame):
        return assay

    if isinstance(assay, AnnData):
        matrix = assay.X
        if not isinstance(matrix, np.ndarray):
            # sparse, pathways are small enough
            matrix = matrix.toarray()
        return pd.DataFrame(
            matrix,
            index=assay.obs_names,
            columns=assay.var_names,
            )

    raise ValueError('Assay must be an AnnData object or pd.DataFrame')


def extract_aespcs(
        assay,
        pathways,
        n_pcs=1,
        min_features=3,
        **kwargs,
        ):
    '''Extract the AES-PCs of each pathway

    Args:
        assay (pandas.DataFrame or anndata.AnnData): centered and scaled
         measurements. If a DataFrame, samples are rows and features are
         columns. AnnData uses the same convention (obs are samples, var are
         features).
        pathways (dict): pathway names as keys and lists of features as
         values.
        n_pcs (int): number of components per pathway.
        min_features (int): minimal number of measured features for a pathway
         to be analyzed. It must be at least n_pcs.
        **kwargs: passed to aespca.aespca (max_iter, eps_conv, adaptive,
         para, solver).

    Returns:
        OrderedDict with pathway names as keys and AESPCAResult as values.
        Pathways whose decomposition failed are still present: check the
        `usable` and `fallback` attributes of each result.
    '''
    if min_features < n_pcs:
        raise ValueError('min_features must be at least n_pcs')

    df = _assay_to_dataframe(assay)

    trimmed = expressed_pathways(
        df.columns,
        pathways,
        min_features=min_features,
        )
    if len(trimmed) == 0:
        raise ValueError(
            ('No pathway has at least {:} features in the assay, are '
             'feature names correct?').format(min_features))

    results = OrderedDict()
    for name, features in trimmed.items():
        results[name] = aespca(
            df.loc[:, features],
            n_pcs=n_pcs,
            **kwargs,
            )

    return results
