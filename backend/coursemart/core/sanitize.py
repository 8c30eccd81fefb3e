from __future__ import annotations

import nh3


def sanitize_html(value: str | None) -> str | None:
    # Keeps safe markup (b, i, p, a[href], ...) and drops script/style including their contents.
    if value is None:
        return None
    return nh3.clean(value)
