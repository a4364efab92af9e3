#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Legacy entry point for the svar-forecast package.

All metadata, dependencies and package discovery live in pyproject.toml; this
shim only lets older tooling that invokes setup.py directly build the package.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
