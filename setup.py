import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="riffstruct",
    version="0.0.1",
    author="Gianluca Pacchiella",
    author_email="gp@ktln2.org",
    description="RIFF containers for humans",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/gipi/riffstruct",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    scripts=[
        "scripts/riffwalk.py",
        "scripts/riffextract.py",
    ],
    install_requires=[
        'bitstring>=4,<5',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GPLv2 License",
        "Operating System :: OS Independent",
    ],
)
