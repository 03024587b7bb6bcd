"""Setup configuration for Fridge Tracker."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="fridge-tracker",
    version="0.1.0",
    description="Fridge inventory core: cookability checks, FIFO cooking and shopping lists",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["fridge_tracker", "fridge_tracker.*"]),
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Topic :: Home Automation",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
