import os
from setuptools import setup, find_packages

setup(
    name="flowmine",
    version="0.1.0",
    packages=find_packages(),
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.1.0",
        "PyYAML>=5.4",
        "networkx>=2.5.0",
        "tqdm>=4.50.0",
        "termcolor>=1.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "coverage>=5.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "flowmine=flowmine.cli:main",
        ],
    },
    author="FlowMine Team",
    description="Descriptive process mining: activity flow graphs, conformance scoring and bottleneck ranking",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.8",
)
