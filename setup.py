"""
Granite Client Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="granite-client",
    version="1.0.0",
    author="Granite Contributors",
    description="Python client for the Granite SQL and object storage backend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
    ],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "click>=8.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "fastapi>=0.100.0",
            "python-multipart>=0.0.6",
        ],
    },
    entry_points={
        "console_scripts": [
            "granite=granite.cli:main",
        ],
    },
    keywords="sql, postgres, mysql, sqlite, oracle, redis, s3, azure-blob, database-client",
)
