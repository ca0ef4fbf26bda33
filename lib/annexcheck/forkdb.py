"""Fork lookup database.

The database is a dump of the hosting service's user and repository
tables, one JSON record per line:

  User.json        {"ID": 1, "Name": "alice", "FullName": ..., "Email": ...}
  Repository.json  {"ID": 7, "OwnerID": 1, "Name": "data", "IsFork": false}

Repositories are indexed by their unique name, lower("owner/name").
"""

import json, os

from annexcheck.helpers import log
from annexcheck.io import path_msg


ORPHAN_OWNER = '<ORPHAN>'

ORPHANS_KEEP = 'keep'
ORPHANS_EXCLUDE = 'exclude'
orphan_policies = (ORPHANS_KEEP, ORPHANS_EXCLUDE)


class ForkDBError(Exception):
    pass


class DBUser:
    __slots__ = 'id', 'name', 'full_name', 'email', 'repositories'
    def __init__(self, id, name, full_name='', email=''):
        self.id = id
        self.name = name
        self.full_name = full_name
        self.email = email
        self.repositories = []


class DBRepo:
    __slots__ = 'id', 'owner_id', 'name', 'is_fork', 'owner_name'
    def __init__(self, id, owner_id, name, is_fork=False, owner_name=None):
        self.id = id
        self.owner_id = owner_id
        self.name = name
        self.is_fork = is_fork
        self.owner_name = owner_name

    def orphan(self):
        return self.owner_name == ORPHAN_OWNER


def _records(path):
    """Yield (line number, decoded record) for every JSON object in the
    file at path.  Lines that don't hold one are reported and skipped.

    """
    try:
        f = open(path, 'rb')
    except OSError as e:
        raise ForkDBError('cannot read %s: %s' % (path_msg(path), e)) from e
    with f:
        for linenum, line in enumerate(f):
            if not line.strip():
                continue
            try:
                rec = json.loads(line)
            except ValueError:
                rec = None
            if not isinstance(rec, dict):
                log('Failed to read record at line %d of %s\n'
                    % (linenum, path_msg(path)))
                continue
            yield linenum, rec


def repo_key(owner, name):
    return ('%s/%s' % (owner, name)).lower()


class ForkDB:
    def __init__(self, orphans=ORPHANS_KEEP):
        if orphans not in orphan_policies:
            raise ForkDBError('unknown orphan policy %r' % orphans)
        self.orphans = orphans
        self.users = {}
        self.repositories = {}

    def load_users(self, path):
        for linenum, rec in _records(path):
            try:
                u = DBUser(rec['ID'], rec['Name'],
                           full_name=rec.get('FullName', ''),
                           email=rec.get('Email', ''))
            except KeyError as e:
                log('Failed to read record at line %d of %s: no %s\n'
                    % (linenum, path_msg(path), e))
                continue
            self.users[u.id] = u
        return len(self.users)

    def load_repositories(self, path):
        for linenum, rec in _records(path):
            try:
                r = DBRepo(rec['ID'], rec['OwnerID'], rec['Name'],
                           is_fork=bool(rec.get('IsFork', False)))
            except KeyError as e:
                log('Failed to read record at line %d of %s: no %s\n'
                    % (linenum, path_msg(path), e))
                continue
            owner = self.users.get(r.owner_id)
            if owner is None:
                log('Repository %r appears to be an orphan\n' % r.name)
                r.owner_name = ORPHAN_OWNER
            else:
                r.owner_name = owner.name
                owner.repositories.append(r)
            self.repositories[repo_key(r.owner_name, r.name)] = r
        return len(self.repositories)

    def lookup(self, owner, name):
        return self.repositories.get(repo_key(owner, name))

    def is_fork(self, path):
        """Return true if the repository at path is known to be a fork.

        The owner and name are taken from the last two components of
        path, e.g. b'/store/alice/data.git' is alice/data.  Repositories
        that aren't in the database are not forks, unless orphans are
        excluded and an orphaned repository of that name exists.
        """
        owner, name = owner_and_name(path)
        r = self.lookup(owner, name)
        if r is not None:
            return r.is_fork
        if self.orphans == ORPHANS_EXCLUDE \
           and self.lookup(ORPHAN_OWNER, name) is not None:
            log('warning: repository %s/%s (%s) matches an orphaned repository, skipping\n'
                % (owner, name, path_msg(path)))
            return True
        log('warning: repository %s/%s (%s) not found in database\n'
            % (owner, name, path_msg(path)))
        return False


def owner_and_name(path):
    path = os.path.normpath(path)
    head, name = os.path.split(path)
    owner = os.path.basename(head)
    if name.endswith(b'.git'):
        name = name[:-len(b'.git')]
    return path_msg(owner), path_msg(name)


def load(dbdir, orphans=ORPHANS_KEEP):
    """Load the database in the directory dbdir."""
    db = ForkDB(orphans=orphans)
    print('Reading user database... ', end='', flush=True)
    n = db.load_users(os.path.join(dbdir, b'User.json'))
    print('loaded %d records' % n)
    print('Reading repository database... ', end='', flush=True)
    n = db.load_repositories(os.path.join(dbdir, b'Repository.json'))
    print('loaded %d records' % n)
    return db
