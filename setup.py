"""MoneyTracker setup - offline-first personal finance client."""
from setuptools import setup, find_packages

setup(
    name="moneytracker",
    version="1.0.0",
    description="MoneyTracker: offline-first personal finance client",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "requests>=2.28",
        "python-dateutil>=2.8",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mt=moneytracker.cli.main:cli",
        ],
    },
)
