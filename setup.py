from setuptools import setup, find_packages


setup(
    name="pathhelpers",
    version="0.1",
    packages=find_packages(include=["pathhelpers", "pathhelpers.*"]),
    description="Absolute path helpers and link-aware ZIP/TAR/7z archive packing and unpacking.",
    install_requires=[
        "py7zr>=0.20",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "pathhelpers=pathhelpers.cli:main",
        ]
    },
)
