
from threading import Lock
import time

import pytest
from wvpytest import *

from annexcheck import helpers
from annexcheck.scanner import MissingContent, Repository
from annexcheck.workers import WorkerQueue, scan_repository
from annextest import make_repo, pointer_file


class Recorder:
    def __init__(self, fail_on=(), delay=0):
        self.lock = Lock()
        self.seen = []
        self.fail_on = fail_on
        self.delay = delay

    def __call__(self, repository):
        if self.delay:
            time.sleep(self.delay)
        with self.lock:
            self.seen.append(repository.path)
        if repository.path in self.fail_on:
            raise RuntimeError('boom')
        repository.missing_content = [MissingContent(b'f', repository.path)]


def run(nworkers, repos, scan):
    wq = WorkerQueue(nworkers, len(repos), scan=scan, show_progress=False)
    wq.start()
    for r in repos:
        wq.submit(r)
    n = wq.wait()
    WVPASSEQ(wq.ncomplete, n)
    return n


@pytest.mark.parametrize('nworkers', [1, 2, 4, 8])
def test_all_jobs_complete_once(nworkers):
    repos = [Repository(b'r%d' % i, annex=True) for i in range(25)]
    rec = Recorder(delay=0.001)
    WVPASSEQ(run(nworkers, repos, rec), 25)
    WVPASSEQ(sorted(rec.seen), sorted(r.path for r in repos))
    for r in repos:
        WVPASSEQ(r.missing_content, [MissingContent(b'f', r.path)])

def test_more_workers_than_jobs():
    repos = [Repository(b'only', annex=True)]
    rec = Recorder()
    WVPASSEQ(run(6, repos, rec), 1)
    WVPASSEQ(rec.seen, [b'only'])

def test_no_jobs():
    rec = Recorder()
    WVPASSEQ(run(4, [], rec), 0)
    WVPASSEQ(rec.seen, [])

def test_failing_job_is_isolated():
    repos = [Repository(b'r%d' % i, annex=True) for i in range(6)]
    rec = Recorder(fail_on=(b'r2',))
    WVPASSEQ(run(3, repos, rec), 6)
    WVPASSEQ(sorted(rec.seen), sorted(r.path for r in repos))
    WVPASSEQ(len(helpers.saved_errors), 1)
    WVPASS('r2' in helpers.saved_errors[0])
    helpers.clear_errors()

def test_bad_arguments():
    with pytest.raises(ValueError):
        WorkerQueue(0, 1)
    wq = WorkerQueue(1, 1, scan=Recorder(), show_progress=False)
    wq.start()
    wq.submit(Repository(b'a'))
    with pytest.raises(ValueError):
        wq.submit(Repository(b'b'))
    WVPASSEQ(wq.wait(), 1)

def test_scan_repository(tmpdir):
    key = b'SHA256E-s10--abcdef'
    repos = [Repository(make_repo(tmpdir + b'/r%d' % i,
                                  files=((b'f%d' % i, pointer_file(key)),)),
                        annex=True)
             for i in range(3)]
    WVPASSEQ(run(2, repos, scan_repository), 3)
    for i, r in enumerate(repos):
        WVPASSEQ([m.tree_path for m in r.missing_content], [b'f%d' % i])
