"""Pool of threads scanning repositories concurrently."""

import queue
import threading

from annexcheck.helpers import add_error, log, qprogress
from annexcheck.io import path_msg
from annexcheck.repo import open_repo
from annexcheck.scanner import find_missing_annex


def scan_repository(repository, opener=open_repo):
    with opener(repository.path) as repo:
        return find_missing_annex(repository, repo)


class ScanWorker(threading.Thread):
    def __init__(self, wq, num):
        super().__init__(name='annexcheck-worker-%d' % num, daemon=True)
        self.wq = wq
        self.num = num

    def run(self):
        wq = self.wq
        while True:
            repository = wq._queue.get()
            if repository is None:
                return
            try:
                wq.scan(repository)
            except Exception as e:
                add_error('error: scanning repository at %s failed: %r'
                          % (path_msg(repository.path), e))
            finally:
                wq._job_done()


class WorkerQueue:
    """Run scan (find_missing_annex() on a freshly opened repository by
    default) for every submitted Repository on nworkers threads.

    The number of jobs has to be known up front; wait() returns once
    that many jobs have been completed.
    """
    def __init__(self, nworkers, njobs, scan=scan_repository,
                 show_progress=True):
        if nworkers < 1:
            raise ValueError('need at least one worker, not %d' % nworkers)
        self.nworkers = nworkers
        self.njobs = njobs
        self.scan = scan
        self.show_progress = show_progress
        # bounded by the job count
        self._queue = queue.Queue(maxsize=max(njobs, 1))
        self._done = threading.Condition()
        self._ncomplete = 0
        self._nsubmitted = 0
        self._workers = []

    @property
    def ncomplete(self):
        with self._done:
            return self._ncomplete

    @property
    def nsubmitted(self):
        return self._nsubmitted

    def _job_done(self):
        with self._done:
            self._ncomplete += 1
            self._done.notify_all()

    def start(self):
        for idx in range(self.nworkers):
            w = ScanWorker(self, idx)
            w.start()
            self._workers.append(w)
            if self.show_progress:
                print('Worker %d started' % idx)

    def submit(self, repository):
        if self._nsubmitted >= self.njobs:
            raise ValueError('cannot submit more than %d jobs' % self.njobs)
        self._nsubmitted += 1
        self._queue.put(repository)

    def wait(self):
        with self._done:
            while self._ncomplete < self.njobs:
                if self.show_progress:
                    qprogress(' : %d/%d\r' % (self._ncomplete, self.njobs))
                self._done.wait(timeout=0.5)
            ncomplete = self._ncomplete
        for _ in self._workers:
            self._queue.put(None)
        for w in self._workers:
            w.join()
        self._workers = []
        if self.show_progress:
            log('\n%d jobs complete. Stopping workers.\n' % ncomplete)
        return ncomplete
