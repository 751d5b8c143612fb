from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="movie-curator",
    version="0.1.0",
    # Repo convention: backend code lives under `backend/` and imports as
    # top-level packages (`import domain`, `import server`, ...).
    package_dir={"": "backend"},
    packages=find_packages(
        where="backend",
        include=[
            "config",
            "config.*",
            "domain",
            "domain.*",
            "application",
            "application.*",
            "infrastructure",
            "infrastructure.*",
            "server",
            "server.*",
        ],
    ),
    python_requires=">=3.10",
    install_requires=[
        "pydantic==2.10.6",
        "python-dotenv>=1.0",
        "aiohttp>=3.9",
        "fastapi>=0.110",
        "uvicorn>=0.27",
    ],
    extras_require={
        # Optional: Cloud Firestore movie store and Firebase ID-token identity.
        "firestore": ["firebase-admin>=6.5"],
        "test": ["pytest>=8.0", "httpx>=0.27"],
        # Convenience: all optional deps.
        "full": ["firebase-admin>=6.5", "pytest>=8.0", "httpx>=0.27"],
    },
)
