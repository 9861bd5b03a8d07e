#! /usr/bin/env python
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

from setuptools import setup


def get_long_desc():
    in_preamble = True
    lines = []

    with open("README.md", "rt", encoding="utf8") as f:
        for line in f:
            if in_preamble:
                if line.startswith("<!--pypi-begin-->"):
                    in_preamble = False
            else:
                if line.startswith("<!--pypi-end-->"):
                    break
                else:
                    lines.append(line)

    lines.append(
        """

The API documentation can be built from the `docs/` directory of the source
distribution with Sphinx.
"""
    )
    return "".join(lines)


setup(
    name="lmkit",
    version="0.1.0",  # also edit lmkit/__init__.py, docs/source/conf.py!
    zip_safe=False,
    packages=[
        "lmkit",
    ],
    # Numpy does all of the numerical heavy lifting. SciPy is only used by
    # the test suite, to cross-check results when it is available.
    install_requires=[
        "numpy >= 1.17",
    ],
    extras_require={
        "docs": [
            "sphinx",
            "sphinx_rtd_theme",
        ],
        "test": [
            "pytest",
            "scipy",
        ],
    },
    python_requires=">=3.7",
    author="The lmkit authors",
    description="Levenberg-Marquardt least-squares fitting with parameter limits",
    license="MIT",
    keywords="least-squares fitting levenberg-marquardt minpack mpfit",
    long_description=get_long_desc(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)
