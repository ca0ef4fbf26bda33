"""Discovery of the repositories in a repository store."""

import os

from annexcheck import git
from annexcheck.helpers import add_error, debug1
from annexcheck.io import path_msg
from annexcheck.repo import open_repo
from annexcheck.scanner import Repository


def has_annex_branch(repo):
    return repo.has_branch(git.ANNEX_BRANCH)


def open_repository(path, is_fork=None):
    """Return a Repository for path, or None if path isn't the root of
    a repository.

    """
    if git.git_dir(path) is None:
        return None
    annex = False
    try:
        with open_repo(path) as repo:
            annex = has_annex_branch(repo)
    except (git.GitError, OSError) as e:
        add_error('error: failed to list branches of repository at %s: %s'
                  % (path_msg(path), e))
    fork = bool(is_fork(path)) if (annex and is_fork) else False
    debug1('%s: annex=%s fork=%s\n' % (path_msg(path), annex, fork))
    return Repository(path, annex=annex, fork=fork)


def discover(repostore, is_fork=None):
    """Yield a Repository for every repository below repostore
    (including repostore itself).

    The walk doesn't descend into .git directories or into bare
    repositories.  is_fork, if given, is only consulted for
    repositories with an annex branch.  Raises OSError if repostore
    can't be read; unreadable directories further down are reported
    and skipped.
    """
    # os.walk() ignores an unreadable top directory
    os.listdir(repostore)

    def onerror(e):
        add_error('error: cannot read %s: %s' % (path_msg(e.filename), e.strerror))

    for dirpath, dirnames, _ in os.walk(repostore, onerror=onerror):
        dirnames.sort()
        if git.GIT_DIR_NAME in dirnames:
            dirnames.remove(git.GIT_DIR_NAME)
        repo = open_repository(dirpath, is_fork=is_fork)
        if repo is None:
            continue
        if git.is_bare_dir(dirpath):
            dirnames[:] = []
        yield repo
