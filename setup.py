#!/usr/bin/env python3

import os
import re

from setuptools import setup


def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        return f.read()

def version():
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", read("src/folio/__init__.py"), re.M)
    if not match:
        raise RuntimeError("failed to parse version")
    return match.group(1)

install_requires = [
    "httpx >= 0.24.0",
    "isodate >= 0.6.0",
    "wrapt >= 1.10.11",
]

extras_require = {
    "test": [
        "pytest >= 7.0",
        "pytest-asyncio >= 0.21.0",
    ],
}

classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Framework :: AsyncIO",
]

setup(
    name = "folio",
    version = version(),
    description = "Generic pagination engine with a client-side search overlay.",
    long_description = read("README.rst"),
    license = "Mozilla Public License 2.0",
    classifiers = classifiers,
    packages = ["folio"],
    package_dir = {"": "src"},
    python_requires = ">= 3.10",
    install_requires = install_requires,
    extras_require = extras_require,
    keywords = "pagination asyncio cursor search catalog",
)
