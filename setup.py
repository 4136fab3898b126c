#!/usr/bin/env python3
# =============================================================================
#  cppcheck-pseudoconst — setup.py
#
#  Version comes from pseudoconst/__init__.py, runtime requirements from
#  requirements.txt.
#
#      pip install -e ".[dev]"
#      python -m pytest
# =============================================================================

from __future__ import annotations

import re
from pathlib import Path

from setuptools import setup, find_packages

_ROOT = Path(__file__).resolve().parent


def _text(name: str) -> str:
    path = _ROOT / name
    return path.read_text(encoding="utf-8") if path.exists() else ""


def _version() -> str:
    found = re.search(r'^__version__\s*=\s*"([^"]+)"',
                      _text("pseudoconst/__init__.py"), re.MULTILINE)
    return found.group(1) if found else "0.0.0"


def _requirements() -> list[str]:
    """Non-comment lines of requirements.txt."""
    reqs = []
    for line in _text("requirements.txt").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            reqs.append(line)
    return reqs


setup(
    name="cppcheck-pseudoconst",
    version=_version(),
    description="Cppcheck addon reporting parameters and members that could be const.",
    long_description=_text("README.md"),
    long_description_content_type="text/markdown",
    license="MIT",
    author="pseudoconst contributors",
    python_requires=">=3.10",
    packages=find_packages(include=["pseudoconst", "pseudoconst.*"]),
    install_requires=_requirements(),
    extras_require={
        "dev": ["pytest>=7.0", "pytest-cov>=4.0", "ruff>=0.4", "mypy>=1.10"],
    },
    entry_points={
        "console_scripts": ["pseudoconst=pseudoconst.main:main"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords=["cppcheck", "addon", "const-correctness"],
    zip_safe=False,
)
