

def byte_stream(file):
    return file.buffer

def path_msg(x):
    """Return a string representation of a path.

    Paths are kept as bytes internally; this is only for messages.
    """
    if isinstance(x, str):
        return x
    return x.decode(errors='backslashreplace')
