from __future__ import annotations

import os
import sys
from typing import List

#: Extra registry roots searched before ``sys.path``.
SEARCH_PATH_ENV = "PROVIDER_REGISTRY_PATH"


def get_search_path() -> List[str]:
    """
    Determine the ambient registry search path.

    Order of roots:
    1. Entries of the PROVIDER_REGISTRY_PATH environment variable, split on
       os.pathsep
    2. sys.path as it is at call time

    The empty entry (as sys.path uses it) stands for the current working
    directory. Roots are returned in order and may repeat; the locator
    collapses roots that point at the same location.
    """
    roots = []

    # 1) Explicit override from the environment
    value = os.environ.get(SEARCH_PATH_ENV)
    if value:
        roots.extend(entry for entry in value.split(os.pathsep) if entry)

    # 2) Interpreter import path
    roots.extend(sys.path)

    return [_normalize(root) for root in roots]


def _normalize(root: str) -> str:
    if not root:
        return os.getcwd()
    return os.fspath(root)
