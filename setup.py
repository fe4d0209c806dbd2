import os
from setuptools import setup

def read(fname):
    return open(os.path.join(os.path.dirname(__file__), fname)).read()

setup(
    name = "sincosgen",
    version = "0.0.1",
    description = ("A table and Taylor correction based sin/cos generator in nmigen"),
    license = "Apache 2.0",
    keywords = "nmigen nco dds sine cosine",
    packages=['sincosgen'],
    install_requires=['amaranth==0.3', 'numpy'],
    extras_require={'test': ['pytest']},
    long_description=read('README.md'),
)
