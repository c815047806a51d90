"""Setup script for hlsladder."""

from setuptools import setup, find_packages

setup(
    name="hlsladder",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "boto3>=1.28.0",
        "click>=8.0.0",
        "ffmpeg-python>=0.2.0",
        "loguru>=0.7.0",
        "pydantic>=2.0.0",
        "tqdm>=4.65.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "hlsladder=hlsladder.cli:main",
        ],
    },
)
