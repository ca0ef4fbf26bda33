
import json, os, re, sys

from wvpytest import *

from annexcheck.hashdir import hashdir_lower
from annextest import add_content, exo, make_repo, pointer_file, pointer_link


annexcheck_cmd = os.path.join(os.path.dirname(os.fsencode(__file__)),
                              b'../../cmd/annexcheck')

KEY1 = b'SHA256E-s10--abcdef'
KEY2 = b'WORM-s3-m1--foo'


def annexcheck(*args, check=False):
    return exo((os.fsencode(sys.executable), annexcheck_cmd) + args,
               check=check)


def make_db(dbdir, users, repos):
    os.makedirs(dbdir)
    with open(os.path.join(dbdir, b'User.json'), 'w') as f:
        for u in users:
            f.write(json.dumps(u) + '\n')
    with open(os.path.join(dbdir, b'Repository.json'), 'w') as f:
        for r in repos:
            f.write(json.dumps(r) + '\n')


def make_store(tmpdir):
    store = tmpdir + b'/store'
    broken = make_repo(store + b'/alice/broken',
                       files=((b'raw/data.bin', pointer_file(KEY1)),
                              (b'README', b'hello\n')),
                       links=((b'img.png', pointer_link(KEY2)),))
    add_content(broken, KEY2)
    fork = make_repo(store + b'/bob/broken', files=((b'f', pointer_file(KEY1)),))
    intact = make_repo(store + b'/alice/intact.git', bare=True,
                       files=((b'x', pointer_file(KEY1)),))
    add_content(intact, KEY1, bare=True, scheme='lower')
    make_repo(store + b'/carol/plain', annex=False,
              files=((b'y', pointer_file(KEY1)),))
    make_db(tmpdir + b'/db',
            [{'ID': 1, 'Name': 'alice', 'FullName': '', 'Email': ''},
             {'ID': 2, 'Name': 'bob', 'FullName': '', 'Email': ''}],
            [{'ID': 1, 'OwnerID': 1, 'Name': 'broken', 'IsFork': False},
             {'ID': 2, 'OwnerID': 2, 'Name': 'broken', 'IsFork': True},
             {'ID': 3, 'OwnerID': 1, 'Name': 'intact', 'IsFork': False}])
    return store, broken


def reported(out):
    return re.findall(br'^Repository "(.*)" is missing content', out, re.M)


def test_end_to_end(tmpdir):
    store, broken = make_store(tmpdir)
    res = annexcheck(b'-j', b'3', b'-d', tmpdir + b'/db', store)
    WVPASSEQ(res.rc, 1)
    WVPASS(b'Repositories with git-annex branch:     3' in res.out)
    WVPASS(b'Forks skipped:                          1' in res.out)
    WVPASS(b'Submitting 2 jobs...' in res.out)
    WVPASS(b'2 jobs complete' in res.err)
    WVPASSEQ(reported(res.out), [broken])
    expected = os.path.join(broken, b'.git/annex/objects', hashdir_lower(KEY1), KEY1)
    records = re.findall(br'^  \d+: .*$', res.out, re.M)
    WVPASSEQ(records, [b'  1: raw/data.bin [%s]' % expected])

    # nothing changed, so the second run reports the same
    res2 = annexcheck(b'-j', b'3', b'-d', tmpdir + b'/db', store)
    WVPASSEQ(res2.rc, 1)
    WVPASSEQ(reported(res2.out), reported(res.out))
    WVPASSEQ(re.findall(br'^  \d+: .*$', res2.out, re.M), records)

def test_without_database(tmpdir):
    store, broken = make_store(tmpdir)
    res = annexcheck(b'-q', store)
    WVPASSEQ(res.rc, 1)
    WVPASS(b'Submitting 3 jobs...' in res.out)
    WVPASSEQ(sorted(reported(res.out)), sorted([broken, store + b'/bob/broken']))

def test_all_present(tmpdir):
    store = tmpdir + b'/store'
    path = make_repo(store + b'/a/r', files=((b'f', pointer_file(KEY1)),))
    add_content(path, KEY1)
    res = annexcheck(store)
    WVPASSEQ(res.rc, 0)
    WVPASSEQ(reported(res.out), [])

def test_usage_and_errors(tmpdir):
    res = annexcheck(b'--version')
    WVPASSEQ(res.rc, 0)
    WVPASS(res.out.startswith(b'GIN data checker '))
    res = annexcheck()
    WVPASSEQ(res.rc, 97)
    WVPASS(b'usage: annexcheck' in res.err)
    res = annexcheck(b'-j', b'0', tmpdir)
    WVPASSEQ(res.rc, 97)
    res = annexcheck(b'--orphans=drop', tmpdir)
    WVPASSEQ(res.rc, 97)
    res = annexcheck(tmpdir + b'/does-not-exist')
    WVPASSEQ(res.rc, 2)
    WVPASS(b'error: cannot scan' in res.err)
    res = annexcheck(b'-d', tmpdir + b'/no-db', tmpdir)
    WVPASSEQ(res.rc, 2)
    WVPASS(b'error: cannot read' in res.err)
