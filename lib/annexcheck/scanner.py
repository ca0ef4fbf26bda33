"""Detection of annexed files whose content is missing.

The scanner looks at the tree of the current branch rather than at the
working tree, so it works the same for bare and non-bare repositories.
"""

from collections import namedtuple
import os

from annexcheck.git import GIT_DIR_NAME, GitError
from annexcheck.hashdir import hashdir_lower, hashdir_mixed
from annexcheck.helpers import add_error, debug1, debug2, exists
from annexcheck.io import path_msg
from annexcheck.pointer import read_pointer_key


MODE_REGULAR = 0o100644
MODE_EXECUTABLE = 0o100755
MODE_SYMLINK = 0o120000

_blob_modes = frozenset((MODE_REGULAR, MODE_EXECUTABLE, MODE_SYMLINK))


MissingContent = namedtuple('MissingContent', ('tree_path', 'object_path'))


class Repository:
    """A repository found in the store.

    missing_content is filled in by the (single) worker that scans the
    repository.
    """
    def __init__(self, path, annex=False, fork=False):
        self.path = path
        self.annex = annex
        self.fork = fork
        self.missing_content = []

    def __repr__(self):
        return '<Repository %s annex=%s fork=%s>' % (path_msg(self.path),
                                                      self.annex, self.fork)


def object_store(path, bare, gitdir=None):
    """Return the annex object store of the repository rooted at path.
    gitdir, if given, is the directory holding the repository's git
    state, which isn't path/.git for linked worktrees and submodules.

    """
    if gitdir is not None:
        return os.path.join(gitdir, b'annex', b'objects')
    if bare:
        return os.path.join(path, b'annex', b'objects')
    return os.path.join(path, GIT_DIR_NAME, b'annex', b'objects')


def content_path(objects, key):
    """Return the path of the content of key in the object store
    objects, or None if it's there under neither hashing scheme.

    The mixed case location is checked first since that's what
    non-bare repositories use.  If both are missing, the lower case
    location is returned as the second element.
    """
    for hashdir in (hashdir_mixed, hashdir_lower):
        path = os.path.join(objects, hashdir(key), key)
        if exists(path):
            return path, None
    return None, path


def check_blob(repo, objects, tree_path, oidx):
    """Return a MissingContent if the blob oidx at tree_path is an
    annex pointer whose content isn't in objects, otherwise None.

    """
    with repo.open_blob(oidx) as blob:
        key = read_pointer_key(blob.size, blob, name=tree_path)
    if key is None:
        return None
    found, expected = content_path(objects, key)
    if found:
        debug2('%s: content at %s\n' % (path_msg(tree_path), path_msg(found)))
        return None
    return MissingContent(tree_path=tree_path, object_path=expected)


def find_missing_annex(repository, repo):
    """Check every annexed file in the current tree of repository (read
    through repo, a BaseRepo) and set repository.missing_content to the
    files whose content isn't available.  Returns that list.

    Failures are recorded with add_error().  If the current tree can't
    be found the repository has no missing content; if a single entry
    can't be read, only that entry is skipped.
    """
    rpath = path_msg(repository.path)
    missing = []
    repository.missing_content = missing
    try:
        head = repo.head()
    except GitError as e:
        add_error('error: failed to get head for repository at %s: %s'
                  % (rpath, e))
        return missing
    try:
        tree = repo.commit_tree(head)
    except GitError as e:
        add_error('error: failed to get root tree of HEAD commit %s for repository at %s: %s'
                  % (head.decode('ascii'), rpath, e))
        return missing

    objects = object_store(repository.path, repo.is_bare(),
                           gitdir=repo.git_dir())
    debug1('%s: checking tree %s against %s\n'
           % (rpath, tree.decode('ascii'), path_msg(objects)))
    try:
        for tree_path, mode, oidx in repo.walk_tree(tree):
            if mode not in _blob_modes:
                continue
            try:
                rec = check_blob(repo, objects, tree_path, oidx)
            except (GitError, OSError, ValueError) as e:
                add_error('error: failed to check blob %s (%s) in %s: %s'
                          % (oidx.decode('ascii'), path_msg(tree_path),
                             rpath, e))
                continue
            if rec:
                missing.append(rec)
    except GitError as e:
        add_error('error: failed to walk tree %s of repository at %s: %s'
                  % (tree.decode('ascii'), rpath, e))
    return missing
