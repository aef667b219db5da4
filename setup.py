import os

import setuptools


module_dir = os.path.dirname(os.path.abspath(__file__))

# Load requirements.txt
with open(os.path.join(module_dir, "requirements.txt")) as f:
    requirements = f.read().splitlines()

with open(os.path.join(module_dir, "README.md")) as f:
    long_description = f.read()

setuptools.setup(
    name="molcube",
    version="0.0.1",
    description="molcube is a python package for regular 3D scalar-field grids "
    "around molecules",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    packages=setuptools.find_packages(include=["molcube", "molcube.*"]),
    entry_points={
        "console_scripts": [
            "molcube = molcube.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Chemistry",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
)
