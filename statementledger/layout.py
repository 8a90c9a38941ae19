# -*- coding: utf-8 -*-
"""layout.py
Rebuild reading-order lines from positioned PDF fragments.

Fragments that share a baseline (within ``tolerance`` units) belong to one
physical line.  Lines come out top-to-bottom, fragments left-to-right.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .models import JOIN_MARKER, Line, PositionedFragment

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 3.0


def group_lines(fragments: Iterable[PositionedFragment], tolerance: float = DEFAULT_TOLERANCE) -> List[Line]:
    """Cluster the fragments of one page into lines."""
    lines: List[Line] = []
    for frag in fragments:
        if not frag.text or not frag.text.strip():
            continue
        # Newest line first: fragments usually arrive in stream order
        for line in reversed(lines):
            if abs(line.y - frag.y) < tolerance:
                line.fragments.append(frag)
                break
        else:
            lines.append(Line(y=frag.y, fragments=[frag]))

    lines.sort(key=lambda ln: -ln.y)
    for line in lines:
        line.fragments.sort(key=lambda f: f.x)
    return lines


def reconstruct_text(pages: Sequence[Sequence[Line]]) -> str:
    """Plain text of every page, one line per row and a blank line per page."""
    out: List[str] = []
    for page_lines in pages:
        for line in page_lines:
            out.append(JOIN_MARKER.join(f.text for f in line.fragments) + "\n")
        out.append("\n")
    text = "".join(out)
    logger.debug(f"Reconstructed {len(text)} characters from {len(pages)} page(s)")
    return text
