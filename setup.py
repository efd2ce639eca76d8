#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import find_packages, setup

# There are problems running setup.py on Windows if the encoding is not set
with open('README.md', encoding='utf8') as readme_file:
    readme = readme_file.read()
with open('HISTORY.rst', encoding='utf8') as history_file:
    history = history_file.read()


setup(
    name='shimmerdata',
    version='1.0.0',
    description="Batching analytics event client for the ShimmerData collection server.",
    long_description=readme + '\n\n' + history,
    long_description_content_type="text/markdown",
    author="ShimmerGames",
    author_email='dev@shimmergames.net',
    url='https://github.com/shimmergames/shimmerdata-python',
    packages=find_packages(exclude=['tests', 'tests.*']),
    entry_points={
        'console_scripts': [
            'shimmerdata=shimmerdata.cli:cli'
        ]
    },
    include_package_data=True,
    install_requires=[
        'click>=8.0',
        'httpx>=0.24',
        'pydantic>=2.0',
        'tenacity>=8.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    python_requires=">=3.8",
    license="MIT license",
    zip_safe=False,
    keywords='shimmerdata analytics events',
    classifiers=[
        'Development Status :: 5 - Production/Stable',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
