#!/usr/bin/env python3
"""
RifsRedis Setup Script
======================
Allows installation of the rifs-redis package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
"""

from setuptools import setup, find_packages

setup(
    name="rifs-redis",
    version="1.0.0",
    packages=find_packages(include=["rifs_redis", "rifs_redis.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "rifs-redis=rifs_redis.server:main",
            "rifs-redis-cli=rifs_redis.cli:main",
        ],
    },
)
