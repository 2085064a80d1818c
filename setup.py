"""
Setup script for probkit.
"""

from setuptools import setup, find_packages

setup(
    name="probkit",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"probkit": ["py.typed"]},
    python_requires=">=3.8",
)
