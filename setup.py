#!/usr/bin/env python3
"""
Setup script for seeede5py.
"""

from setuptools import setup, find_packages

setup(
    name="seeede5py",
    version="0.1.0",
    description="Python driver for the Seeed LoRa-E5 LoRaWAN module via AT commands",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pyserial>=3.5",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "seeede5-cli=seeede5py.cli:main",
        ],
    },
    keywords=["seeed", "lora-e5", "lorawan", "at-commands", "iot", "serial"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Communications",
        "Topic :: System :: Hardware :: Hardware Drivers",
        "License :: OSI Approved :: MIT License",
    ],
)
