from setuptools import setup, find_packages

setup(
    name="dbspace-manager",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "python-dotenv>=0.19.0",
        "psutil>=5.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dbspaces=dbspaces.cli:main",
        ],
    },
    python_requires=">=3.8",
)
