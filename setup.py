"""Setup script for context-gatherer package."""

from setuptools import setup, find_packages
import pathlib

# Get the long description from the README file
here = pathlib.Path(__file__).parent.resolve()
long_description = (here / "README.md").read_text(encoding="utf-8") if (here / "README.md").exists() else "context-gatherer: budget-constrained context aggregation for language-model requests."

setup(
    name="context-gatherer",
    version="0.1.0",
    description="Concurrent multi-source context aggregation under a token budget",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Context Gatherer Team",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="llm, context, token-budgeting, retrieval, asyncio",
    packages=find_packages(include=["context_gatherer", "context_gatherer.*"]),
    python_requires=">=3.8, <4",
    install_requires=[
        "PyYAML>=6.0",
        "tiktoken>=0.4.0",
        "aiofiles>=23.0",
        "python-dotenv>=1.0",
        "rich>=13.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "pytest-cov>=2.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
)
