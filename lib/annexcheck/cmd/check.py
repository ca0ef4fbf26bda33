
import sys

from annexcheck import forkdb, helpers, options
from annexcheck.compat import argv_bytes
from annexcheck.discover import discover
from annexcheck.helpers import (EXIT_FAILURE, EXIT_FALSE, EXIT_SUCCESS,
                                log)
from annexcheck.io import byte_stream, path_msg
from annexcheck.version import build, commit, version
from annexcheck.workers import WorkerQueue


optspec = """
annexcheck [-d DIR] [-j N] [--orphans=keep|exclude] <repostore>
--
d,database=  directory holding User.json and Repository.json for fork detection; without it, no fork detection is performed
j,nworkers=  number of concurrent workers [4]
orphans=     what to do with repositories whose owner is unknown (keep, exclude) [keep]
q,quiet      don't print the repository listing and progress
v,verbose    increase log output (can be used more than once)
version      show version information
"""


def print_version():
    print('GIN data checker %s Build %s (%s)'
          % (version.decode('ascii'), build.decode('ascii'),
             commit.decode('ascii')))


def write_report(out, repos):
    """Write the missing content of every repository in repos to out.
    Returns the number of repositories with missing content.

    """
    n = 0
    for r in repos:
        if not r.missing_content:
            continue
        n += 1
        out.write(b'Repository "%s" is missing content for the following files:\n'
                  % r.path)
        for idx, mc in enumerate(r.missing_content):
            out.write(b'  %d: %s [%s]\n' % (idx + 1, mc.tree_path, mc.object_path))
        out.write(b'\n')
    out.flush()
    return n


def main(argv):
    o = options.Options(optspec)
    opt, flags, extra = o.parse(argv[1:])

    if opt.version:
        print_version()
        return EXIT_SUCCESS
    if len(extra) != 1:
        o.fatal('exactly one repository store expected')
    if not isinstance(opt.nworkers, int) or opt.nworkers < 1:
        o.fatal('--nworkers must be a positive integer')
    if opt.orphans not in forkdb.orphan_policies:
        o.fatal('--orphans must be one of %s' % ', '.join(forkdb.orphan_policies))
    if opt.verbose:
        helpers.set_debug_level(opt.verbose)

    repostore = argv_bytes(extra[0])

    is_fork = None
    if opt.database:
        try:
            db = forkdb.load(argv_bytes(str(opt.database)), orphans=opt.orphans)
        except forkdb.ForkDBError as e:
            log('error: %s\n' % e)
            return EXIT_FAILURE
        is_fork = db.is_fork

    print('Scanning %s' % path_msg(repostore))
    try:
        repos = list(discover(repostore, is_fork=is_fork))
    except OSError as e:
        log('error: cannot scan %s: %s\n' % (path_msg(repostore), e))
        return EXIT_FAILURE

    annexcount = forkcount = 0
    jobs = []
    for r in repos:
        if not r.annex:
            continue
        annexcount += 1
        if r.fork:
            forkcount += 1
            continue
        jobs.append(r)
        if not opt.quiet:
            print('%d: %s' % (len(jobs), path_msg(r.path)))

    print('Total repositories scanned:         %5d' % len(repos))
    print('Repositories with git-annex branch: %5d' % annexcount)
    print('Forks skipped:                      %5d' % forkcount)
    print('Repositories to check:              %5d' % len(jobs))

    wq = WorkerQueue(opt.nworkers, len(jobs), show_progress=not opt.quiet)
    wq.start()
    print('Submitting %d jobs...' % len(jobs), end='', flush=True)
    for r in jobs:
        wq.submit(r)
    print('Done')
    wq.wait()

    sys.stdout.flush()
    nmissing = write_report(byte_stream(sys.stdout), jobs)

    if helpers.saved_errors:
        log('warning: %d errors encountered\n' % len(helpers.saved_errors))
        return EXIT_FAILURE
    if nmissing:
        return EXIT_FALSE
    return EXIT_SUCCESS
