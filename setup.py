# -*- coding: utf-8 -*-

# system imports
from setuptools import setup, find_packages  # type: ignore


# proceed with actual install
install_requires = [
    "click>=8.0.0",
    "packaging",
    "rich>=9.6.0",
    "typing_extensions",
]

test_requires = [
    "pytest",
    "pytest-cov",
]

dev_requires = [
    "black",
    "bump2version",
    "flake8",
    "mypy",
    "pre-commit",
] + test_requires

setup(
    name="sqlhandle",
    version="1.0.0",
    description="Resource-safe access to SQLite databases.",
    license="MIT",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages("src"),
    package_dir={"": "src"},
    package_data={
        "sqlhandle": ["py.typed"],
    },
    install_requires=install_requires,
    extras_require={
        "test": test_requires,
        "dev": dev_requires,
    },
    zip_safe=False,
    entry_points={
        "console_scripts": ["sqlhandle=sqlhandle.cli:main"],
    },
    python_requires=">=3.7",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Database",
    ],
)
