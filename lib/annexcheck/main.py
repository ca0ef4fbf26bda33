
import sys

from annexcheck.cmd import check
from annexcheck.helpers import handle_ctrl_c


def main():
    handle_ctrl_c()
    sys.exit(check.main(sys.argv))


if __name__ == '__main__':
    main()
