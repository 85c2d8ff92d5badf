"""
Setup script for prepsync.

prepsync is the client-side learning-progress layer for an interview-prep
curriculum platform. It provides:

1. Curriculum Scheduling - Goal and experience-tier learning paths in dependency order
2. Review Scheduling - SM-2 spaced repetition for completed sections
3. Progress Sync - Retrying, deduplicated API calls with a coherent local cache

The 'prepsync' command exposes the schedulers and cache from the terminal.
"""

from setuptools import find_packages, setup

setup(
    name="prepsync",
    version="1.0.0",
    description="Learning path, spaced repetition and progress sync for interview prep",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["prepsync", "prepsync.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "prepsync=prepsync.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning spaced-repetition sm2 curriculum cli education",
)
