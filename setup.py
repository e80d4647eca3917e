"""
Build configuration for heapinspect.

Pure Python package, src layout.

Requirements:
  - Python 3.9+
"""

from pathlib import Path

from setuptools import find_packages, setup


setup(
    name="heapinspect",
    version="0.1.0",
    description="Heap snapshot inspections for duplicate strings and self-referencing objects",
    long_description=Path("README.md").read_text() if Path("README.md").exists() else "",
    long_description_content_type="text/markdown",
    author="heapinspect contributors",
    license="MIT",
    python_requires=">=3.9",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={
        "heapinspect": ["py.typed"],
    },
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "heapinspect=heapinspect.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Debuggers",
        "Topic :: System :: Monitoring",
    ],
    keywords="heap, heap-dump, memory, duplicate-strings, memory-leak",
)
