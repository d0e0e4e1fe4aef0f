# vim: fdm=indent
# author:     Fabio Zanini
# date:       14/10/26
# content:    aespca entry point for import
from .decompose import AESPCA, AESPCAResult, aespca
from .lars_lsa import lars_lsa, LarsError
from .pathways import expressed_pathways, extract_aespcs
from ._version import version

__all__ = [
    'AESPCA',
    'AESPCAResult',
    'aespca',
    'lars_lsa',
    'LarsError',
    'expressed_pathways',
    'extract_aespcs',
    'version',
    ]
