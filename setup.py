from setuptools import find_namespace_packages, setup


setup(
    name="fstabgen",
    version="1.0.0",
    description="Generates mount, swap and automount units from the mount table",
    author="desultory",
    package_dir={"": "src"},
    packages=find_namespace_packages("src"),
    package_data={
        "fstabgen": ["*.toml"]
    },
    python_requires=">=3.11",
    install_requires=['zenlib>=1.2.0'],
    entry_points={
        "console_scripts": [
            "fstabgen = fstabgen.main:main"
        ]
    }
)
