"""Locations of annexed content in an annex object store.

git-annex stores the content of a key below two directory levels derived
from the MD5 of the key.  Two layouts exist: the "mixed" case one used
by non-bare repositories and older annexes, and the "lower" case one
used by bare repositories and special remotes.  See
https://git-annex.branchable.com/internals/hashing/

Both functions take the key as bytes and return the relative path
b'<dir1>/<dir2>/<key>'.
"""

from hashlib import md5
import struct


_mixed_letters = b'0123456789zqjxkmvwgpfZQJXKMVWGPF'


def hashdir_lower(key):
    hashx = md5(key).hexdigest().encode('ascii')
    return b'/'.join((hashx[:3], hashx[3:6], key))


def hashdir_mixed(key):
    # first 32 bit word of the digest, read little-endian
    word, = struct.unpack('<I', md5(key).digest()[:4])
    letters = []
    for _ in range(4):
        letters.append(_mixed_letters[word & 31:(word & 31) + 1])
        word >>= 6
    return b'/'.join((letters[1] + letters[0], letters[3] + letters[2], key))
