"""Setup for the Tripflow kiosk SDK."""

from setuptools import find_packages, setup

setup(
    name="tripflow-sdk",
    version="0.1.0",
    description="Tripflow check-in API Python SDK for kiosks and guide devices",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "requests>=2.31.0",
    ],
    python_requires=">=3.11",
)
