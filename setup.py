#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Document Translation Jobs - Setup Configuration
Enables optional dependency groups for offline translation.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

# Optional dependencies for offline translation
argos_requirements = [
    "argostranslate>=1.9.0",
]

setup(
    name="doc-translation-jobs",
    version="1.0.0",
    description="Document translation job pipeline with pluggable translation providers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Document Translation Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["job_cli"],
    install_requires=requirements,
    extras_require={
        # Offline provider
        "argos": argos_requirements,

        # Development dependencies
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
        ],

        # All optional features
        "all": argos_requirements,
    },
    entry_points={
        "console_scripts": [
            "translator-jobs=job_cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Text Processing :: Linguistic",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="translation deepl libretranslate argos amazon-translate documents",
)
