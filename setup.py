# setup.py
"""
Category Sync Package Setup

Install the package:
    pip install -e .

Or for development:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="category-sync",
    version="0.1.0",
    description="Category synchronization and resilient-update client for a storefront app backend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["categorysync", "categorysync.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "APScheduler>=3.10,<4",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "respx>=0.20.0",  # For mocking httpx
        ],
    },
    entry_points={
        "console_scripts": [
            "categorysync=categorysync.cli:main",
        ],
    },
)
