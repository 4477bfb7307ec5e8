#!/usr/bin/env python

from itertools import chain
from pathlib import Path
from setuptools import setup, find_packages

project_root = Path(__file__).resolve().parent
long_description = project_root.joinpath('readme.rst').read_text('utf-8')

about = {}
with project_root.joinpath('diamond_op', '__version__.py').open('r', encoding='utf-8') as f:
    exec(f.read(), about)

optional_dependencies = {
    'dev': [                                            # Development env requirements
        'coverage',
        'pre-commit',                                   # run `pre-commit install` to install hooks
    ],
    'test': ['pytest'],                                 # tests/* (also runnable with `python -m unittest`)
}
optional_dependencies['ALL'] = sorted(set(chain.from_iterable(optional_dependencies.values())))

requirements = [
    'cli_command_parser>=2022.9.11',                    # diamond_op.cli
    'PyYAML',                                           # diamond_op.config
    'tzlocal',                                          # diamond_op.logging
]


setup(
    name=about['__title__'],
    version=about['__version__'],
    author=about['__author__'],
    description=about['__description__'],
    long_description=long_description,
    long_description_content_type='text/x-rst',
    packages=find_packages(include=('diamond_op', 'diamond_op.*')),
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
    ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require=optional_dependencies,
    entry_points={'console_scripts': ['diamond-cat=diamond_op.cli:main']},
)
