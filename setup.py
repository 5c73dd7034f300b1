#!/usr/bin/env python3
"""
Setup script for the public service complaint portal

Install with:
    pip install -e .

Or with the test tooling:
    pip install -e ".[dev]"

The API server runs from backend/:
    cd backend && uvicorn app.main:app --reload
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# API server dependencies
backend_requirements = [
    "fastapi>=0.109.0",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "asyncpg>=0.29.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "email-validator>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "python-multipart>=0.0.6",
    "aiosmtplib>=3.0.0",
    "aiofiles>=23.2.1",
    "slowapi>=0.1.9",
    "redis>=5.0.0",
    "python-dotenv>=1.0.0",
    "faker>=22.0.0",  # seed_demo_data.py
]

# CLI dependencies
cli_requirements = [
    "httpx>=0.26.0",
    "rich>=13.7.0",
]

setup(
    name="pengaduan-portal",
    version="1.0.0",
    description="Public service complaint portal - API server and command line client",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Pemerintah Kabupaten Badung",
    license="MIT",
    packages=find_packages(include=["cli", "cli.*"]),
    python_requires=">=3.9",
    install_requires=backend_requirements + cli_requirements,
    extras_require={
        "cli": cli_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pengaduan=cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    keywords="complaints public-service fastapi government",
)
