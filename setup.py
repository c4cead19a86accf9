from setuptools import setup, find_namespace_packages

setup(
    name="vbuild",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["vbuild", "vbuild.*"]),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "vbuild=vbuild.CLI.main:main",
            "vbuild-all=vbuild.CLI.main:build_main",
            "mkimage=vbuild.CLI.main:mkimage_main",
        ],
    },
)
