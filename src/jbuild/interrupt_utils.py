"""Utilities for handling KeyboardInterrupt while a tool is running.

A Ctrl+C that arrives while jbuild waits on javac, jar or the built program
must reach the main thread even when it was caught in a stage's handler.
"""

import _thread


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Propagate a caught KeyboardInterrupt to the main thread and re-raise it.

    Usage:
        try:
            invoker.run(["javac", ...])
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)

    Args:
        ke: The KeyboardInterrupt exception to handle

    Raises:
        KeyboardInterrupt: Always
    """
    _thread.interrupt_main()
    raise ke
