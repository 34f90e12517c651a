"""
Setup configuration for specpipe package.
"""

from setuptools import setup, find_packages

setup(
    name="specpipe",
    version="0.1.0",
    description="Cross-referencing post-processor for technical specifications",
    packages=find_packages(include=["specpipe", "specpipe.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "httpx>=0.25",
        "tenacity>=8.2",
        "click>=8.1",
        "markdown-it-py>=3.0",
        "mdit-py-plugins>=0.4",
        "linkify-it-py>=2.0",
        "widlparser>=1.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "logfire[httpx]>=0.40",
        "beautifulsoup4>=4.12",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "specpipe=specpipe.cli.main:cli",
        ],
    },
)
