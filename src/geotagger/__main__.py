from __future__ import annotations

import sys

from geotagger.app.bootstrap import run


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
