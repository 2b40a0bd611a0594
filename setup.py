"""Setup configuration for the Vouchcord Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="vouchcord",
    version="0.0.1",
    description="A Discord bot that validates vouches and collects proof images",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord",
        "aiosqlite",
        "PyYAML",
        "python-dotenv",
        "requests",
        "prompt_toolkit",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
