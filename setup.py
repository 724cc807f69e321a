from setuptools import find_namespace_packages, setup

setup(
    name="campsite-ingest",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["campsite_ingest*"]),
    install_requires=[
        "boto3>=1.28.0",
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "moto>=5.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "campsite-classify=campsite_ingest.tools.classify_places:main",
        ]
    },
    python_requires=">=3.11",
)
