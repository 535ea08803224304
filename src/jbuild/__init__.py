"""jbuild - build tool for Java projects."""

__version__ = "0.1.0"
