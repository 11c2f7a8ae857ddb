from setuptools import setup

setup(
    name="matchedpairs",
    version="0.1.0",
    description="Matched molecular pair data set builder and query engine.",
    author="William Sprague",
    author_email="wsprague@u.northwestern.edu",
    packages=["matchedpairs"],
    python_requires=">=3.10",
    install_requires=["networkx", "numpy", "pandas", "rdkit"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["matchedpairs=matchedpairs.cli:main"],
    },
)
