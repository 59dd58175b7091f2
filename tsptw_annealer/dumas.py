""" Loader for the Dumas TSP-TW benchmark format.

A file holds a few header lines followed by one row per node:

    CUST NO.  XCOORD.  YCOORD.  DEMAND  READY TIME  DUE DATE  SERVICE TIME

the first row being the depot. A row numbered 999 terminates the data. Lines that are not data rows (headers,
`!!` markers, blanks) are skipped. """

from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional, Union

from .errors import InstanceError
from .models import Node, ProblemInstance

END_OF_DATA = 999
_NUM = r"\s+([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
_ROW = re.compile(r"^\s*(\d+)" + _NUM * 6 + r"\s*$")


def parse_rows(text: str) -> List[Node]:
    nodes: List[Node] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        m = _ROW.match(line)
        if m is None:
            fields = line.split()
            # seven columns led by a node number can only be a data row
            if len(fields) == 7 and fields[0].isdigit():
                raise InstanceError(f"line {lineno}: malformed data row {line.strip()!r}")
            continue
        if int(m.group(1)) == END_OF_DATA:
            break
        x, y, demand, ready, due, service = (float(v) for v in m.groups()[1:])
        nodes.append(Node(id=int(m.group(1)), x=x, y=y, demand=demand,
                          time_windows=[ready, due], service_time=service))
    return nodes


def load_dumas_string(text: str, name: Optional[str] = None) -> ProblemInstance:
    nodes = parse_rows(text)
    if len(nodes) < 2:
        raise InstanceError(f"Dumas data holds {len(nodes)} node row(s); need at least two")
    return ProblemInstance(nodes=nodes, name=name)


def load_dumas_file(path: Union[str, Path]) -> ProblemInstance:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{path} not found.")
    return load_dumas_string(path.read_text(encoding="utf-8"), name=path.name)
