"""
Pytest configuration for the jbuild test suite.

The --full flag also runs the integration tests, which need a JDK.
"""


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (needs javac, jar, javap)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    if config.getoption("--full"):
        # Drop the default marker expression that excludes integration tests
        if config.getoption("-m", "") == "not integration":
            config.option.markexpr = ""
