from setuptools import setup, find_packages
import pathlib

__version__ = "0.1.0"

# The directory containing this file
HERE = pathlib.Path(__file__).parent

# The text of the README file
README = (HERE / "README.md").read_text()

setup(
    name="purity-py",
    version=__version__,
    long_description=README,
    description="Python utilities for deconvolving overlapping elution peaks with a two-component log-normal mixture and computing resolution and fraction purity.",
    long_description_content_type='text/markdown',
    license="GPLv3",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
    ],
    packages=find_packages(
        exclude=('tests', 'purity.egg-info')),
    include_package_data=True,
    install_requires=[
        "matplotlib>=3.7.0",
        "numpy>=1.24.4",
        "pandas>=2.0.3",
        "scipy>=1.10.0",
        "seaborn>=0.12.2",
        "termcolor>=2.3.0",
        "tqdm>=4.64.1",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
