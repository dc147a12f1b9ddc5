from setuptools import setup

setup(
    name="minplus",
    version="1.0.0",
    author="The minplus authors",
    license="GPL-3.0",
    description="Min-plus algebra of ultimately pseudo-periodic piecewise affine curves for network calculus",
    packages=[
        "minplus",
        "minplus.numerics",
        "minplus.algebra",
        "minplus.curves",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Natural Language :: English",
    ],
    install_requires=["numpy", "matplotlib"],
    extras_require={"test": ["pytest"]},
    python_requires=">=3.9",
)
