"""Index of terms defined in the document itself."""

import logging
import re
from typing import Dict

from bs4 import Tag

from ...core.models import LocalTarget
from ...utils.html_tree import HEADING_TAGS, heading_anchor_id, text_content, unique_id
from ...utils.text import normalize_term, slugify

logger = logging.getLogger(__name__)

_VARIANT_SPLIT_RE = re.compile(r'[|,]')


def dfn_variants(dfn: Tag) -> list:
    """Terms a ``<dfn>`` defines: its ``data-lt`` list, else its text."""
    text = (dfn.get("data-lt") or text_content(dfn)).strip()
    return [v.strip() for v in _VARIANT_SPLIT_RE.split(text) if v.strip()]


def build_local_map(root: Tag) -> Dict[str, LocalTarget]:
    """
    Map normalized terms to in-document targets.

    ``<dfn>`` definitions are indexed before headings so a definition always
    wins over a heading with the same text. Within each kind the first
    occurrence wins. Definitions and headings without ids are given one.
    """
    local_map: Dict[str, LocalTarget] = {}

    for dfn in root.find_all("dfn"):
        variants = dfn_variants(dfn)
        if not variants:
            continue
        if not dfn.get("id"):
            dfn["id"] = unique_id(dfn, slugify(variants[0]) or "dfn")
        href = f"#{dfn['id']}"
        for variant in variants:
            local_map.setdefault(
                normalize_term(variant),
                LocalTarget(href=href, text=variant, source="dfn"),
            )

    for heading in root.find_all(list(HEADING_TAGS)):
        label = text_content(heading).strip()
        if not label:
            continue
        target_id = heading_anchor_id(heading)
        local_map.setdefault(
            normalize_term(label),
            LocalTarget(href=f"#{target_id}", text=label, source="heading"),
        )

    logger.debug(f"Local term map has {len(local_map)} entries")
    return local_map
