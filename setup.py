#!/usr/bin/env python3
"""
Setup script for month_archive package
"""
from setuptools import setup, find_packages

setup(
    name="month_archive",
    version="1.0.0",
    description="Zip dated month directories and upload them to S3",
    author="Month Archive Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "PyYAML>=6.0",
        "psutil>=5.0.0",
        "boto3>=1.26.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "month-archive=month_archive.cli.main:main",
        ],
    },
    include_package_data=True,
    package_data={
        "month_archive": ["*.yaml", "*.yml"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Archiving",
    ],
    keywords="zip archive batch s3 upload",
)
