
import os
from contextlib import contextmanager

environ = os.environb
fsencode = os.fsencode


def argv_bytes(x):
    """Return the original bytes passed to main for an argv argument."""
    return fsencode(x)


@contextmanager
def pending_raise(ex, rethrow=True):
    """If an exception is raised inside the managed block, make ex the
    __context__ of the new exception.  Otherwise, raise ex again
    (unless rethrow is false).

    """
    try:
        yield
    except BaseException as ex2:
        if ex2 is not ex:
            ex2.__context__ = ex
        raise
    if rethrow:
        raise ex
