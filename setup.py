from setuptools import setup, find_packages

setup(
    name="hdinsight-cluster-cli",
    version="0.6.15",
    packages=find_packages(include=["hdinsight_cli", "hdinsight_cli.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "cli-core-yo<2",
        "pydantic>=2",
        "pyyaml",
        "requests",
        "rich",
        "typer",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "hdinsight-cli=hdinsight_cli.cli:main",
        ],
    },
)
