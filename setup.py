"""Setup for Prompt Workbench variable and prompt-data engine."""

from setuptools import setup, find_packages

setup(
    name="prompt-workbench",
    version="0.1.0",
    description="Variable resolution and multi-format prompt data conversion for prompt engineering workbenches",
    author="The Kitchen Coder",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "openai>=1.0.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    python_requires=">=3.9",
)
