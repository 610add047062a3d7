"""
Jinja2-based renderer for inspect reports. Loads templates from package templates.
"""

from __future__ import annotations

from jinja2 import Environment, PackageLoader

from pilosactl.core.types import BitmapInfo

HEADERS = ("KEY", "TYPE", "N", "ALLOC", "OFFSET")


def get_jinja_env() -> Environment:
    return Environment(
        loader=PackageLoader("pilosactl", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def container_rows(info: BitmapInfo) -> list[tuple[str, ...]]:
    return [
        (str(c.key), c.type, str(c.n), str(c.alloc), f"0x{c.offset:08x}")
        for c in info.containers
    ]


def render_inspect(info: BitmapInfo) -> str:
    rows = container_rows(info)
    widths = [
        max([len(h)] + [len(row[i]) for row in rows]) for i, h in enumerate(HEADERS)
    ]
    env = get_jinja_env()
    template = env.get_template("inspect.txt.j2")
    return template.render(info=info, headers=HEADERS, rows=rows, widths=widths)
