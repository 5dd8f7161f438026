import tomllib
from setuptools import setup, find_packages

# Safely read the long description from README.md, if present
try:
    with open("README.md", encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = ""

# Parse version from pyproject.toml so release bumps need only modify that file
with open("pyproject.toml", "rb") as fp:
    VERSION = tomllib.load(fp)["project"]["version"]

setup(
    name="fmrimatic",
    version=VERSION,
    description="Catalog raw Bruker fMRI sessions and lay out AnalysedData hierarchies",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["fmrimatic", "fmrimatic.*"]),
    package_data={"fmrimatic": ["resources/*.yaml"]},
    install_requires=[
        "click>=8.0",
        "tableprint>=0.9.0",
        "PyYAML>=5.4",
        "pydantic>=2.0",
        "requests>=2.20",
        "rich>=13.0",
        "structlog>=23.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "fmrimatic-cli = fmrimatic.cli:cli",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
