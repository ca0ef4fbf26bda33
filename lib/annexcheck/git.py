"""Git interaction library.
annexcheck only ever reads from repositories, and it does so through the
git executable rather than by parsing pack files itself.
"""

from collections import namedtuple
from subprocess import PIPE, DEVNULL
import os, re, subprocess

from annexcheck.compat import environ, pending_raise
from annexcheck.helpers import add_error, debug2
from annexcheck.io import path_msg


GIT_DIR_NAME = b'.git'
ANNEX_BRANCH = b'refs/heads/git-annex'


class GitError(Exception):
    pass


def _git_env(repo_dir):
    env = dict(environ)
    env[b'GIT_DIR'] = repo_dir
    return env


def git_dir(path):
    """Return the git directory of the repository rooted at path, or
    None if path isn't a repository root (i.e. it's neither a working
    tree with a .git entry nor a bare repository).  An unreadable .git
    link file is recorded with add_error().

    """
    dotgit = os.path.join(path, GIT_DIR_NAME)
    if os.path.isdir(dotgit):
        return dotgit
    if os.path.isfile(dotgit):
        # "gitdir: ..." link file, e.g. a submodule or a linked worktree
        try:
            with open(dotgit, 'rb') as f:
                line = f.readline().strip()
        except OSError as e:
            add_error('error: cannot read %s: %s' % (path_msg(dotgit), e))
            return None
        if line.startswith(b'gitdir: '):
            target = os.path.join(path, line[len(b'gitdir: '):])
            if os.path.isdir(target):
                return target
        return None
    if is_bare_dir(path):
        return path
    return None


def common_dir(repo_dir):
    """Return the directory holding the state shared by all the worktrees
    of the repository whose git directory is repo_dir.  That's repo_dir
    itself except for linked worktrees, whose git directory names it in
    a "commondir" file.

    """
    try:
        with open(os.path.join(repo_dir, b'commondir'), 'rb') as f:
            rel = f.readline().strip()
    except FileNotFoundError:
        return repo_dir
    return os.path.normpath(os.path.join(repo_dir, rel))


def is_bare_dir(path):
    """Return true if path looks like the metadata store of a bare
    repository.

    """
    return os.path.isfile(os.path.join(path, b'HEAD')) \
        and os.path.isdir(os.path.join(path, b'objects')) \
        and os.path.isdir(os.path.join(path, b'refs'))


def _git_capture(repo_dir, argv):
    p = subprocess.Popen([b'git'] + argv, stdin=DEVNULL, stdout=PIPE,
                         stderr=PIPE, env=_git_env(repo_dir))
    out, err = p.communicate()
    return p.returncode, out, err


def _git_output(repo_dir, argv):
    rc, out, err = _git_capture(repo_dir, argv)
    if rc != 0:
        raise GitError('%r returned %d: %s'
                       % (b' '.join([b'git'] + argv), rc,
                          err.strip().decode(errors='backslashreplace')))
    return out


def rev_parse(repo_dir, committish):
    """Resolve committish to a commit, returning the hex oid (bytes).

    Raises GitError if it doesn't name a commit.
    """
    rc, out, err = _git_capture(repo_dir, [b'rev-parse', b'--verify', b'--quiet',
                                           committish + b'^{commit}'])
    if rc != 0:
        raise GitError('cannot resolve %s in %s'
                       % (path_msg(committish), path_msg(repo_dir)))
    oidx = out.strip()
    debug2('resolved %s to %s\n' % (path_msg(committish), oidx.decode('ascii')))
    return oidx


def list_refs(repo_dir, patterns=None, limit_to_heads=False):
    """Yield (refname, hex oid) for each ref in the repository.

    If limit_to_heads is true, only refs/heads/ are listed.
    """
    argv = [b'for-each-ref', b'--format=%(objectname) %(refname)']
    if limit_to_heads:
        argv.append(b'refs/heads/')
    if patterns:
        argv.extend(patterns)
    for line in _git_output(repo_dir, argv).splitlines():
        oidx, name = line.split(b' ', 1)
        yield name, oidx


Commit = namedtuple('Commit', ('tree', 'parents', 'message'))

_commit_hdr_rx = re.compile(br'^([a-z]+) (.*)$')

def parse_commit(content):
    """Parse the headers of a raw commit object; only what the tree walk
    needs is kept.

    """
    tree = None
    parents = []
    hdrs, sep, message = content.partition(b'\n\n')
    for line in hdrs.split(b'\n'):
        m = _commit_hdr_rx.match(line)
        if not m:
            continue
        key, val = m.groups()
        if key == b'tree':
            tree = val
        elif key == b'parent':
            parents.append(val)
    if tree is None:
        raise GitError('commit has no tree header')
    return Commit(tree=tree, parents=parents, message=message)


def tree_decode(buf):
    """Generate a list of (mode, name, hash) from the git tree object in buf."""
    assert isinstance(buf, bytes)
    ofs = 0
    while ofs < len(buf):
        z = buf.find(b'\0', ofs)
        if z < 0 or z + 21 > len(buf):
            raise GitError('truncated tree object')
        spl = buf[ofs:z].split(b' ', 1)
        if len(spl) != 2:
            raise GitError('malformed tree entry at offset %d' % ofs)
        mode, name = spl
        yield int(mode, 8), name, buf[z+1:z+1+20]
        ofs = z + 1 + 20


class MissingObject(GitError):
    def __init__(self, oidx):
        self.oidx = oidx
        GitError.__init__(self, 'object %r is missing' % oidx)


class CatPipe:
    """Link to 'git cat-file' that is used to retrieve blob data."""
    def __init__(self, repo_dir):
        self.repo_dir = repo_dir
        self.p = None
        self.inprogress = None

    def close(self, wait=False):
        p = self.p
        self.p = None
        self.inprogress = None
        if p:
            try:
                p.stdout.close()
            finally:
                p.stdin.close()
        if wait and p:
            p.wait()
            return p.returncode
        return None

    def restart(self):
        self.close(wait=True)
        self.p = subprocess.Popen([b'git', b'cat-file', b'--batch-command'],
                                  stdin=PIPE, stdout=PIPE,
                                  close_fds=True, bufsize=4096,
                                  env=_git_env(self.repo_dir))

    def _request(self, cmd, ref):
        if not self.p or self.p.poll() is not None:
            self.restart()
        assert self.p
        poll_result = self.p.poll()
        assert poll_result is None
        if self.inprogress:
            raise GitError('opening %r while %r is open'
                           % (ref, self.inprogress))
        assert ref.find(b'\n') < 0
        assert ref.find(b'\r') < 0
        assert not ref.startswith(b'-')
        self.p.stdin.write(cmd + b' ' + ref + b'\n')
        self.p.stdin.flush()
        hdr = self.p.stdout.readline()
        if not hdr:
            raise GitError('unexpected cat-file EOF (last request: %r, exit: %s)'
                           % (ref, self.p.poll() or 'none'))
        if hdr.endswith(b' missing\n'):
            raise MissingObject(ref)
        info = hdr.split(b' ')
        if len(info) != 3 or len(info[0]) not in (40, 64):
            raise GitError('expected object (id, type, size), got %r' % info)
        oidx, typ, size = info
        return oidx, typ, int(size)

    def info(self, ref):
        """Return (oidx, type, size) for ref without reading its data."""
        return self._request(b'info', ref)

    def get(self, ref):
        """Return (oidx, type, size, reader) for ref.

        The reader must be closed (or read to the end) before the next
        request; closing it discards whatever hasn't been read.
        """
        oidx, typ, size = self._request(b'contents', ref)
        self.inprogress = ref
        return oidx, typ, size, ObjectReader(self, size)

    def get_data(self, ref, expected_type):
        oidx, typ, size, reader = self.get(ref)
        with reader:
            if typ != expected_type:
                raise GitError('%s is a %s, expected %s'
                               % (path_msg(ref), path_msg(typ),
                                  path_msg(expected_type)))
            return reader.read(size, fill=True)


class ObjectReader:
    """The data of one object streamed out of a CatPipe."""
    def __init__(self, pipe, size):
        self._pipe = pipe
        self.size = size
        self._remaining = size
        self.closed = False

    def read(self, n, fill=False):
        """Return at most n bytes of the object.

        Unless fill is true, this is a single read from the pipe and
        may return less than n even before the end of the object.
        """
        assert not self.closed
        n = min(n, self._remaining)
        if n <= 0:
            return b''
        out = self._pipe.p.stdout
        if fill:
            buf = out.read(n)
        else:
            buf = out.read1(n)
        if not buf:
            raise GitError('unexpected EOF while reading object data')
        self._remaining -= len(buf)
        if fill and len(buf) != n:
            raise GitError('short read: %d of %d bytes' % (len(buf), n))
        return buf

    def close(self):
        if self.closed:
            return
        self.closed = True
        pipe = self._pipe
        try:
            out = pipe.p.stdout
            while self._remaining > 0:
                buf = out.read(min(self._remaining, 65536))
                if not buf:
                    raise GitError('unexpected EOF while draining object data')
                self._remaining -= len(buf)
            if out.read(1) != b'\n':
                raise GitError('expected newline after object data')
        except BaseException as ex:
            with pending_raise(ex):
                # the protocol is out of sync now
                pipe.close(wait=True)
        finally:
            pipe.inprogress = None

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        with pending_raise(value, rethrow=False):
            self.close()
