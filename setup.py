from setuptools import setup, find_packages

setup(
    name="shamebot-cron",
    version="0.1.0",
    description="Shamebot cron service - pester, reminder and overdue triggers for tasks",
    python_requires=">=3.10",
    packages=find_packages(include=["shamebot_cron", "shamebot_cron.*"]),
    install_requires=[
        "apscheduler>=3.10.0,<4",
        "python-dotenv>=1.0.0",
        "loguru>=0.7.0",
    ],
    extras_require={
        "discord": ["discord.py>=2.0"],
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
        "all": [
            "discord.py>=2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "shamebot-cron=shamebot_cron.main:main",
        ],
    },
)
