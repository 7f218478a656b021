from setuptools import setup, find_packages

setup(
    name="oscope",
    version="1.0.0",
    description="Send, receive and relay OSC messages over UDP from the terminal",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "oscope = oscope.cli:main",
        ],
    },
    python_requires=">=3.10",
)
