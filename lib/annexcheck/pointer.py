"""Recognition of annex pointer blobs.

An annexed file is committed either as a symlink into the annex object
store (locked files) or as a small pointer file naming the key (unlocked
files).  Both are tiny blobs whose content contains "annex/objects" and
ends with the key.
"""

from annexcheck.git import GitError
from annexcheck.helpers import add_error
from annexcheck.io import path_msg


MAX_POINTER_SIZE = 1024
ANNEX_OBJECTS = b'annex/objects'


def pointer_key(data):
    """Return the annex key referenced by data, or None if data isn't a
    pointer.

    """
    if ANNEX_OBJECTS not in data:
        return None
    key = data.strip().rstrip(b'/').rsplit(b'/', 1)[-1]
    if not key or b'\0' in key:
        return None
    return key


def read_pointer_key(size, reader, name=b''):
    """Return the annex key of the blob behind reader, or None.

    Blobs that are empty or larger than MAX_POINTER_SIZE are rejected
    without reading.  Otherwise the blob is classified on the result of
    a single read of at most MAX_POINTER_SIZE bytes, even if that read
    returns less than the whole blob.  A failing read is recorded and
    the blob is treated as not being a pointer.
    """
    if size == 0 or size > MAX_POINTER_SIZE:
        return None
    try:
        data = reader.read(MAX_POINTER_SIZE)
    except (GitError, OSError) as e:
        add_error('error: failed to read contents of blob %s: %s'
                  % (path_msg(name), e))
        return None
    return pointer_key(data)
