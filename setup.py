from setuptools import setup, find_packages

setup(
    name="cs-match-forecaster",
    version="0.1.0",
    description="Win probability and confidence forecasts for competitive team matches",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.22.4",
        "pandas>=1.5.3",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "cs-forecaster=match_forecaster.main:main",
        ],
    },
)
