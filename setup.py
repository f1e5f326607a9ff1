"""supportvector — minimal setup.py for editable installs."""

from setuptools import setup, find_packages

setup(
    name="supportvector",
    version="1.0.0",
    description="Support vector machines on tabular data with bucketed confusion matrices",
    author="LucaGandolfi77",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"supportvector": ["configs/*.yaml"]},
    install_requires=[
        "scikit-learn>=1.3.0",
        "pandas>=2.1.0",
        "numpy>=1.24.0",
        "matplotlib>=3.7.0",
        "seaborn>=0.12.0",
        "pyyaml>=6.0",
        "joblib>=1.3.0",
        "loguru>=0.7.2",
    ],
    extras_require={
        "dev": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "supportvector=supportvector.__main__:main",
        ],
    },
)
