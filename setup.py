"""
Setup script for the brag-list project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="brag-list",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "langchain-core>=0.2",
        "langchain-openai>=0.1",
        "tenacity>=8.2",
        "json-repair>=0.25",
        "fastapi>=0.110",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.25",
        ],
    },
)
