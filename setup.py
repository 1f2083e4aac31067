#!/usr/bin/env python3
"""
KV-Dict Setup Script
====================
Allows installation of the kv-dict package.

Usage:
    pip install -e .           # Development install
    pip install -e ".[test]"   # With test dependencies
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="kv-dict",
    version="1.0.0",
    packages=find_packages(include=["kvdict", "kvdict.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "kv-dict=kvdict.server:main",
        ],
    },
)
