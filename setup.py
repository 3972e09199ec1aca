#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="probdraw",
    version="0.1.0",
    description="Probability distributions with moments, densities, quantiles and stream-driven samplers",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",

    # finds probdraw/ and its subpackages, but not tests, docs, etc.
    packages=find_packages(exclude=["tests*", "docs*", "notebooks*"]),

    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.25",
        "scipy>=1.10",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "flake8",
        ],
    },

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

    include_package_data=False,
)
