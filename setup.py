# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Setup configuration for the errorhub package."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="errorhub",
    version="0.1.0",
    author="Copilot-for-Consensus Contributors",
    description="Error reporting and aggregation service with fingerprint grouping and cached statistics",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Alan-Jowett/CoPilot-For-Consensus",
    packages=find_packages(include=["errorhub", "errorhub.*", "errorhub_*"]),
    package_data={
        "errorhub_config": ["schemas/*.json"],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.109.0",  # HTTP API
        "starlette>=0.36.0",  # Middleware base classes
        "uvicorn>=0.27.0",  # ASGI server
        "pydantic>=2.4.0",  # Error report validation
        "PyJWT>=2.8.0",  # Bearer token validation
        "cryptography>=44.0.1",  # RS256 key loading
        "pymongo>=4.6.0",  # MongoDB document store driver
        "redis>=5.0.0",  # Redis cache and rate limiter drivers
        "prometheus-client>=0.19.0",  # Prometheus metrics collector
        "sentry-sdk>=2.0.0",  # Sentry escalation sink
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.27.0",  # fastapi.testclient
            "hypothesis>=6.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.27.0",
            "hypothesis>=6.0.0",
            "pylint>=3.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "errorhub=errorhub.main:main",
        ],
    },
)
