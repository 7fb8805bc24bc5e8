from setuptools import setup, find_packages

setup(
    name="neuroevo_simulator",
    version="1.0.0",
    description="Neuroevolution simulator: agents with evolved neural network brains in a tile world",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config", "errors", "main"],
    install_requires=[
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "tqdm>=4.60.0",
        "numba>=0.54.0",
        "jax>=0.4.1",
        "jaxlib>=0.4.1",
        "deap>=1.3.1",
        "scipy>=1.7.0",
        "loguru>=0.6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["neuroevo-sim=main:main"],
    },
    python_requires=">=3.10",
)
