#!/usr/bin/env python

from setuptools import setup, find_packages


setup(
    name='annexcheck',
    version='0.3',
    description='Find git-annex repositories with missing annexed content',
    python_requires='>=3.7',
    package_dir={'': 'lib'},
    packages=find_packages('lib'),
    include_package_data=True,
    install_requires=[],
    extras_require={
        'test': ['pytest'],
    },
    scripts=[
        "cmd/annexcheck",
    ],
)
