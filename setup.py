"""Setup file for star-history-service package."""

from setuptools import setup, find_packages

setup(
    name="star-history-service",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "requests",
        "urllib3",
        "numpy",
        "pandas",
        "python-dotenv"
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "flake8",
            "mypy"
        ]
    },
    entry_points={
        "console_scripts": [
            "star-history=star_history.main:main"
        ]
    }
)
