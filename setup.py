# setup.py
from setuptools import setup, find_packages

setup(
    name="remindcycle",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "ntplib",
        "python-dateutil",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "remindcycle=remindcycle.main:run_wizard",
        ],
    },
)
