"""Setup script for quick installation."""

from setuptools import find_packages, setup

setup(
    name="football-insights",
    version="0.1.0",
    description="Football match predictions, daily picks and bet settlement engine",
    author="Football Insights Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.25.0",
        "scipy>=1.11.0",
        "requests>=2.31.0",
        "sqlalchemy>=2.0.0",
        "click>=8.1.0",
        "rich>=13.5.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "apscheduler>=3.10.0,<4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "football-insights=football_insights.cli.main:cli",
        ],
    },
)
