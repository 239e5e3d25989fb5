from setuptools import setup, find_packages

setup(
    name="conftrack",
    version="0.1.0",
    description="ConfTrack - conference deadline tracking with subscription reminders",
    python_requires=">=3.10",
    packages=find_packages(include=["conftrack", "conftrack.*"]),
    install_requires=[
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "aiohttp>=3.9.0",
        "apscheduler>=3.10.0,<4",
        "python-dotenv>=1.0.0",
        "python-dateutil>=2.8.0",
        "pydantic>=2.0.0",
        "loguru>=0.7.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "telegram": ["python-telegram-bot>=20.0"],
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",
        ],
        "all": [
            "python-telegram-bot>=20.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "conftrack=conftrack.main:main",
        ],
    },
)
