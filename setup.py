import os
import re
from setuptools import setup, find_packages


here = os.path.abspath(os.path.dirname(__file__))


def read_text(*parts):
    with open(os.path.join(here, *parts), encoding='utf-8') as f:
        return f.read()


def get_version():
    # _version.py holds a single line: version = "x.y.z"
    match = re.search(
        r'^version\s*=\s*"([^"]+)"',
        read_text('aespca', '_version.py'),
        re.M,
        )
    if match is None:
        raise RuntimeError('Cannot find the version in aespca/_version.py')
    return match.group(1)


setup(
    name="aespca",
    version=get_version(),
    author="Fabio Zanini",
    author_email="fabio.zanini@fastmail.fm",
    description="Adaptive, elastic-net, sparse PCA of biological pathways.",
    license="MIT",
    keywords="sparse-pca pathway lasso",
    packages=['aespca'] + ['aespca.' + s for s in find_packages(where='aespca')],
    long_description=read_text('README.md'),
    long_description_content_type='text/markdown',
    classifiers=[
        "Development Status :: 4 - Beta",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "License :: OSI Approved :: MIT License",
    ],
    install_requires=[
        'numpy',
        'pandas',
        'scikit-learn',
        'anndata',
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    },
)
