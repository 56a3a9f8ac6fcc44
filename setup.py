from setuptools import setup, find_packages

setup(
    name="linepatch",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "pyyaml",
        "textual",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "linepatch=linepatch.cli:main",
        ],
    },
    description="Preview and apply line-range edits to text files.",
)
