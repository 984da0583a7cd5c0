#!/usr/bin/env python3
"""
Setup script for CampusDesk

Install with:
    pip install -e .

With test tooling:
    pip install -e ".[dev]"

The API service itself runs from backend/:
    cd backend && uvicorn app.main:app --reload
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Console dependencies
cli_requirements = [
    "httpx>=0.26.0",
    "rich>=13.7.0",
    "python-dotenv>=1.0.0",
]

# API service dependencies (backend/app imports the console's shared rules)
server_requirements = [
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "pydantic[email]>=2.5.0",
    "pydantic-settings>=2.1.0",
    "bcrypt>=4.1.0",
]

setup(
    name="campusdesk",
    version="1.0.0",
    description="CampusDesk - campus administration console and API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="CampusDesk Team",
    license="MIT",
    packages=find_packages(include=["campusdesk", "campusdesk.*"]),
    python_requires=">=3.9",
    install_requires=cli_requirements + server_requirements,
    extras_require={
        "cli": cli_requirements,
        "server": server_requirements,
        "postgres": ["asyncpg>=0.29.0"],
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "faker>=22.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "campusdesk=campusdesk.main:main",
            "cdesk=campusdesk.main:main",  # Short alias
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Utilities",
    ],
    keywords="campus college administration leave-management cli fastapi",
)
