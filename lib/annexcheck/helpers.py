"""Helper functions and classes for annexcheck."""

from threading import Lock
import os, sys, time

from annexcheck.compat import environ


EXIT_SUCCESS = 0
EXIT_FALSE = 1
EXIT_FAILURE = 2


try:
    buglvl = int(environ.get(b'ANNEXCHECK_DEBUG', b'0'))
except ValueError:
    buglvl = 0


def set_debug_level(level):
    global buglvl
    buglvl = level


_log_lock = Lock()
_last_prog = 0

def log(s):
    """Print a log message to stderr."""
    global _last_prog
    with _log_lock:
        sys.stdout.flush()
        sys.stderr.write(s)
        sys.stderr.flush()
        _last_prog = 0


def debug1(s):
    if buglvl >= 1:
        log(s)


def debug2(s):
    if buglvl >= 2:
        log(s)


istty2 = os.isatty(2) or (int(environ.get(b'ANNEXCHECK_FORCE_TTY', b'0')) & 2)

def progress(s):
    """Calls log() if stderr is a TTY.  Does nothing otherwise."""
    global _last_prog
    if istty2:
        log(s)
        _last_prog = time.time()


def qprogress(s):
    """Calls progress() only if we haven't printed progress in a while.

    This avoids overloading the stderr buffer with excess junk.
    """
    global _last_prog
    now = time.time()
    if now - _last_prog > 0.1:
        progress(s)
        _last_prog = now


saved_errors = []
_errors_lock = Lock()

def add_error(e):
    """Append an error message to the list of saved errors.

    Once processing is able to stop and output the errors, the saved errors are
    accessible in the module variable helpers.saved_errors.
    """
    with _errors_lock:
        saved_errors.append(e)
    log('%-70s\n' % e)


def clear_errors():
    global saved_errors
    with _errors_lock:
        saved_errors = []


def handle_ctrl_c():
    """Replace the default exception handler for KeyboardInterrupt (Ctrl-C).

    The new exception handler will make sure that annexcheck will exit without
    an ugly stacktrace when Ctrl-C is hit.
    """
    oldhook = sys.excepthook
    def newhook(exctype, value, traceback):
        if exctype == KeyboardInterrupt:
            log('\nInterrupted.\n')
        else:
            oldhook(exctype, value, traceback)
    sys.excepthook = newhook


def exists(path):
    """Return true if path exists, following symlinks.

    Errors other than ENOENT/ENOTDIR are raised.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        return False
    return True
