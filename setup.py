from setuptools import setup, find_packages

setup(
    name="settings_registry",
    version="0.1.0",
    description="Typed configuration variables over pluggable storage backends",
    packages=find_packages(),
    install_requires=[
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "typing-extensions>=4.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    python_requires=">=3.10",
)
