
import pytest
from wvpytest import *

from annexcheck import options


optspec = """
prog [-d DIR] <thing>
--
d,database=  where the database is
j,nworkers=  number of workers [4]
orphans=     orphan policy [keep]
v,verbose    more output
q,quiet      less output
"""

class Aborted(Exception):
    pass

def _abort(msg):
    return Aborted(msg)


def test_defaults():
    o = options.Options(optspec, onabort=_abort)
    opt, flags, extra = o.parse(['x'])
    WVPASSEQ(extra, ['x'])
    WVPASSEQ(opt.database, None)
    WVPASSEQ(opt.nworkers, 4)
    WVPASSEQ(opt.orphans, 'keep')
    WVPASSEQ(opt.verbose, None)

def test_parse():
    o = options.Options(optspec, onabort=_abort)
    opt, flags, extra = o.parse(['-vv', '--database', '/db', 'a', '-j8',
                                 '--orphans=exclude', '--no-quiet', 'b'])
    WVPASSEQ(extra, ['a', 'b'])
    WVPASSEQ(opt.database, '/db')
    WVPASSEQ(opt.d, '/db')
    WVPASSEQ(opt.nworkers, 8)
    WVPASSEQ(opt.orphans, 'exclude')
    WVPASSEQ(opt.verbose, 2)
    WVPASSEQ(opt.quiet, False)
    WVPASSEQ(opt.no_quiet, True)
    opt, flags, extra = o.parse(['-j', 'many'])
    WVPASSEQ(opt.nworkers, 'many')

def test_errors():
    o = options.Options(optspec, onabort=_abort)
    with pytest.raises(Aborted):
        o.parse(['--bogus'])
    with pytest.raises(Aborted):
        o.parse(['-h'])
    with pytest.raises(Aborted):
        o.fatal('nope')
