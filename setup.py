# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

with open("requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="pbatch",
    version="1.0.0",
    description="pbatch runs a callable on a batch of items in parallel with bounded "
    "concurrency.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="pbatch Team",
    license="LGPL-2.1 license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest",
        ]
    },
    python_requires=">=3.10",
)
