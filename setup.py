from setuptools import setup, find_packages

# Read the requirements from the requirements.txt file
with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="gridSOM",
    version="0.1.0",
    description="Self-Organizing Map trained on a rows x 10 prototype grid, with neighborhood annealing and post-training labeling",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=required,
    extras_require={"test": ["pytest"], "docs": ["sphinx", "sphinx_rtd_theme"]},
    include_package_data=True,
)
