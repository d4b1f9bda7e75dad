#!/usr/bin/env python3
"""Setup script for the Jira work item export tool.
"""

from setuptools import find_packages, setup

# Read requirements from requirements.txt file
with open("requirements.txt") as f:
    requirements = f.read().splitlines()

# Remove any comments or blank lines from requirements
requirements = [line for line in requirements if line and not line.startswith("#")]

setup(
    name="jira-workitem-export",
    version="0.1.0",
    description="Maps Jira issue history to work item revisions",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"src": ["resources/*.css"]},
    include_package_data=True,
    python_requires=">=3.11,<4.0",
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    license="MIT",  # SPDX license identifier
    entry_points={
        "console_scripts": [
            "j2w=src.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
