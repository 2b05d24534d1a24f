from setuptools import setup, find_packages

setup(
    name="condensation-watchdog",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas",
        "requests",
        "openpyxl",
        "psycopg2-binary",
        "fastapi",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        'console_scripts': [
            'condensation-watchdog=condensation_watchdog.main:main',
        ],
    },
)
