"""Setup script for the Treasury demo backend."""

from setuptools import setup, find_packages

setup(
    name="treasury-demo",
    version="0.1.0",
    description="Demo backend for Stripe Connect onboarding and Treasury outbound payments",
    author="ML Roadmap Bootcamp",
    python_requires=">=3.9",
    packages=find_packages(include=["treasury_demo", "treasury_demo.*"]),
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#") and not line.startswith("git+")
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.27.0",
        ],
        "dev": [
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "treasury-demo=treasury_demo.api.main:main",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Financial and Insurance Industry",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
