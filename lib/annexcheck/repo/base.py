
from stat import S_ISDIR

from annexcheck.compat import pending_raise
from annexcheck.helpers import debug2
from annexcheck.io import path_msg


def notimplemented(fn):
    def newfn(obj, *args, **kwargs):
        raise NotImplementedError(f'{obj.__class__.__name__}.{fn.__name__}')
    return newfn

class BaseRepo:
    """Read access to one repository.

    The scanner only talks to repositories through this interface, so
    it doesn't care how the objects are actually fetched.
    """
    def __init__(self, path):
        self.path = path
        self.closed = False

    def close(self):
        self.closed = True

    def __del__(self):
        assert self.closed

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        with pending_raise(value, rethrow=False):
            self.close()

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, path_msg(self.path))

    @notimplemented
    def is_bare(self):
        """
        Return True if the repository has no working tree.
        """

    def git_dir(self):
        """
        Return the directory holding the git state shared by all the
        worktrees of the repository (the repository itself if it's
        bare), or None if it isn't on the local filesystem.
        """
        return None

    @notimplemented
    def branches(self):
        """
        Yield the names (bytes, e.g. b'refs/heads/master') of all
        local branches.
        """

    def has_branch(self, refname):
        return refname in self.branches()

    @notimplemented
    def head(self):
        """
        Return the oidx (hex oid) of the commit the current branch
        points to.  Raises an error if it can't be resolved, e.g. in a
        repository without any commit.
        """

    @notimplemented
    def commit_tree(self, oidx):
        """
        Return the oidx of the root tree of the commit 'oidx'.
        """

    @notimplemented
    def tree_entries(self, oidx):
        """
        Return a list of (mode, name, oidx) for the tree 'oidx', in
        the order they're stored in the tree.
        """

    @notimplemented
    def open_blob(self, oidx):
        """
        Return a reader for the blob 'oidx'.  The reader has a 'size'
        attribute, a read(n) method returning at most n bytes per
        call, and must be closed (it's a context manager).
        """

    def walk_tree(self, oidx, prefix=b''):
        """Yield (path, mode, oidx) for every entry below the tree
        'oidx', depth first, in tree order.  Tree entries are yielded
        too, before their contents.

        """
        for mode, name, sub_oidx in self.tree_entries(oidx):
            path = prefix + name
            yield path, mode, sub_oidx
            if S_ISDIR(mode):
                debug2('descending into %s\n' % path_msg(path))
                yield from self.walk_tree(sub_oidx, prefix=path + b'/')
