# setup.py
from setuptools import setup, find_packages

setup(
    name="blog_migrator",
    version="0.1.0",
    description="Blog post crawler and old/new site title reconciliation for site migrations",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"blog_migrator.report": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "Jinja2>=3.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["blog-migrator=blog_migrator.cli:cli"],
    },
    python_requires=">=3.10",
)
