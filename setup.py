from setuptools import setup, find_packages

setup(
    name='Evolab',
    version='0.1',
    packages=find_packages(include=["evolab", "evolab.*"]),
    package_data={"evolab": ["scenario_default.yaml"]},
    install_requires=[
        "numpy",
        "pandas",
        "pydantic>=2",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    author='Danyang Chen, Chenyu Li',
    description='Evolab: deterministic open-ended evolution of tool-building agents',
)
