from setuptools import find_namespace_packages, setup

with open("version.txt") as f:
    version = f.read().strip()

with open("README.md", encoding="utf-8") as f:
    long_description = f.read().strip()

setup(
    name="gcloudrpc",
    version=version,
    description="RPC dispatch, retry and pagination for Google Cloud API clients",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="Apache-2.0",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["gcloudrpc*"]),
    python_requires=">=3.11",
    install_requires=[
        "google-auth",
        "googleapis-common-protos",
        "grpcio",
        "grpcio-tools",
        "protobuf",
        "requests",
        "typing_extensions",
    ],
    extras_require={"test": ["pytest", "pytest-asyncio"]},
    zip_safe=False,
)
