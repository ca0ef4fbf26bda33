
from binascii import hexlify

from annexcheck import git
from annexcheck.compat import pending_raise
from annexcheck.repo.base import BaseRepo


class LocalBlob:
    def __init__(self, cp, oidx, size):
        self._cp = cp
        self.oidx = oidx
        self.size = size
        self._reader = None

    def read(self, n):
        if self._reader is None:
            _, typ, _, self._reader = self._cp.get(self.oidx)
            if typ != b'blob':
                raise git.GitError('%s is a %s, not a blob'
                                   % (self.oidx.decode('ascii'),
                                      typ.decode('ascii')))
        return self._reader.read(n)

    def close(self):
        if self._reader is not None:
            reader = self._reader
            self._reader = None
            reader.close()

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        with pending_raise(value, rethrow=False):
            self.close()


class LocalRepo(BaseRepo):
    def __init__(self, path):
        super().__init__(path)
        self.repo_dir = git.git_dir(path)
        if self.repo_dir is None:
            self.closed = True
            raise git.GitError('%r is not a repository' % path)
        try:
            self.common_dir = git.common_dir(self.repo_dir)
        except OSError:
            self.closed = True
            raise
        self._cp = git.CatPipe(self.repo_dir)

    def close(self):
        if not self.closed:
            self.closed = True
            self._cp.close(wait=True)

    def is_bare(self):
        return self.repo_dir == self.path

    def git_dir(self):
        return self.common_dir

    def branches(self):
        return [name for name, _ in git.list_refs(self.repo_dir,
                                                  limit_to_heads=True)]

    def head(self):
        return git.rev_parse(self.repo_dir, b'HEAD')

    def commit_tree(self, oidx):
        data = self._cp.get_data(oidx, b'commit')
        return git.parse_commit(data).tree

    def tree_entries(self, oidx):
        data = self._cp.get_data(oidx, b'tree')
        return [(mode, name, hexlify(oid))
                for mode, name, oid in git.tree_decode(data)]

    def open_blob(self, oidx):
        _, _, size = self._cp.info(oidx)
        return LocalBlob(self._cp, oidx, size)
