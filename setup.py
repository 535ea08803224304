"""
Setup file.
"""

from setuptools import setup

URL = "https://github.com/jbuild/jbuild"
KEYWORDS = "java javac jar build compiler toolchain release"


if __name__ == "__main__":
    setup(
        keywords=KEYWORDS,
        url=URL)
