from __future__ import annotations

import os


def stored_files(store) -> list[str]:
    return sorted(n for n in os.listdir(store.root) if os.path.isfile(os.path.join(store.root, n)))
