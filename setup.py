# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

import os.path
import sys

try:
    from setuptools import find_packages, setup
except ImportError:
    sys.exit('missing setuptools package')


# https://packaging.python.org/en/latest/guides/single-sourcing-package-version/
def read(rel_path):
    here = os.path.abspath(os.path.dirname(__file__))
    with open(os.path.join(here, rel_path), 'r') as fp:
        return fp.read()


def get_version(rel_path):
    for line in read(rel_path).splitlines():
        if line.startswith('__version__'):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1]
    else:
        raise RuntimeError('Unable to find version string.')


def get_long_description():
    with open('README.md', 'r') as f:
        text = f.read()
    return text


setup(
    name='spdx-parse',
    version=get_version('spdx_parse/__init__.py'),
    author='Espressif Systems',
    author_email='',
    description='SPDX document parser for tag-value, JSON and YAML formats',
    long_description_content_type='text/markdown',
    long_description=get_long_description(),
    packages=find_packages(),
    python_requires='>=3.7',
    keywords=['spdx', 'sbom', 'license', 'tag-value'],
    install_requires=[
        'PyYAML',
        'schema',
        'license-expression',
        'rich',
        'pyparsing>=3.0',
    ],
    extras_require={
        'dev': [
            'pytest',
            'commitizen',
            'spdx-tools>=0.8.0',
        ],
    },
    classifiers=[
        'Development Status :: 1 - Planning',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3.7',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Operating System :: POSIX',
        'Operating System :: Microsoft :: Windows',
        'Operating System :: MacOS :: MacOS X',
    ],
)
