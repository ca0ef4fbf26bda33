
from annexcheck.repo import base, local


BaseRepo = base.BaseRepo
LocalRepo = local.LocalRepo


def open_repo(path):
    """Return a LocalRepo for the repository rooted at path."""
    return LocalRepo(path)
