from pathlib import Path

import setuptools

this_directory = Path(__file__).parent
readme_path = this_directory / "README.rst"
long_description = readme_path.read_text() if readme_path.exists() else ""

test_dependencies = ["pytest"]


setuptools.setup(
    name="clusterpack",
    version="0.1.0",
    description="Phyllotaxis cluster layouts with Voronoi cells, bar packing and force placement.",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    packages=["clusterpack"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    keywords="layout phyllotaxis voronoi delaunay packing clusters visualization",
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.18",
        "scipy>=1.9",
        "scikit-learn",
        "shapely>=2.0",
        "pandas",
        "typer",
    ],
    test_suite="pytest",
    tests_require=test_dependencies,
    extras_require={"test": test_dependencies},
)
