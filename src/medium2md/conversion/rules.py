"""Text production rules for the node types Medium posts rely on.

Each rule is a pure function of a DOM node and/or its already-rendered
content. ``ArticleRenderer`` wires them into the markdownify tag hooks.
"""

from __future__ import annotations

import re
from typing import Optional

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

CDN_IMAGE_PATTERN = re.compile(r"^https://cdn-images.*\.medium\.com")

CONTINUATION_CLASS = "graf-after--pre"
ASPECT_RATIO_CONTAINER_CLASS = "aspectRatioPlaceholder"
ASPECT_RATIO_FILL_SELECTOR = ".aspectRatioPlaceholder-fill"

_PADDING_BOTTOM = re.compile(r"padding-bottom\s*:\s*([0-9]*\.?[0-9]+)\s*%", re.IGNORECASE)
_BACKTICK_RUN = re.compile(r"`+")


def has_class(node: Tag, class_name: str) -> bool:
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return class_name in classes


def is_cdn_image(src: str) -> bool:
    """Check whether an image is served by Medium's CDN."""
    return bool(CDN_IMAGE_PATTERN.match(src))


def code_block_text(node: Tag) -> str:
    """Text of a ``pre`` block, with ``<br>`` flattened to newlines."""
    parts = []
    for el in node.descendants:
        if isinstance(el, Tag):
            if el.name == "br":
                parts.append("\n")
        elif isinstance(el, NavigableString) and not isinstance(el, PreformattedString):
            parts.append(str(el))
    return "".join(parts)


def render_code_block(node: Tag) -> str:
    """
    Render a ``pre`` node as a fenced block.

    Medium splits long listings into adjacent ``pre`` siblings; the ones
    after the first carry ``graf-after--pre``. Those continue the fence
    opened by their predecessor, and only the last block of a run closes it.
    """
    opening = "" if has_class(node, CONTINUATION_CLASS) else "```\n"

    next_sibling = node.find_next_sibling()
    closing = "" if isinstance(next_sibling, Tag) and next_sibling.name == "pre" else "```"

    return f"\n\n{opening}{code_block_text(node)}\n{closing}\n\n"


def render_inline_code(content: str) -> str:
    """
    Wrap content in a backtick run longer than any run it contains.

    Content starting or ending with a backtick is padded with a space on
    that side so the delimiter stays unambiguous.
    """
    if not content.strip():
        return ""

    longest = max((len(run) for run in _BACKTICK_RUN.findall(content)), default=0)
    delimiter = "`" * (longest + 1)
    leading = " " if content.startswith("`") else ""
    trailing = " " if content.endswith("`") else ""

    return f"{delimiter}{leading}{content}{trailing}{delimiter}"


def render_image(src: str, alt: str = "", title: str = "") -> str:
    """Standard image markup; an image without a source renders as nothing."""
    if not src:
        return ""
    title_part = f' "{title}"' if title else ""
    return f"![{alt}]({src}{title_part})"


def splice_caption(element: str, caption: str) -> str:
    """Insert a caption at the alt-text position of an image line."""
    if not caption or not element.startswith("!["):
        return element
    return f"{element[:2]}{caption}{element[2:]}"


def figure_caption(figure: Tag) -> str:
    """Whitespace-normalized text of a figure's ``figcaption`` ('' if none)."""
    caption = figure.find("figcaption")
    if not isinstance(caption, Tag):
        return ""
    return " ".join(caption.get_text(" ").split())


def figure_image_line(content: str) -> Optional[str]:
    """Pick the image line out of a figure's rendered content."""
    lines = [line.strip() for line in content.split("\n") if line.strip()]
    for line in lines:
        if line.startswith("!["):
            return line
    return lines[0] if lines else None


def aspect_ratio_of(iframe: Tag) -> float:
    """
    Height/width ratio of an embed, from its aspect ratio container.

    Medium wraps responsive embeds in ``.aspectRatioPlaceholder`` whose
    ``.aspectRatioPlaceholder-fill`` child sets ``padding-bottom: P%``.
    Without a container or a readable percentage the ratio is 1.
    """
    if has_class(iframe, ASPECT_RATIO_CONTAINER_CLASS):
        container: Optional[Tag] = iframe
    else:
        container = iframe.find_parent(class_=ASPECT_RATIO_CONTAINER_CLASS)
    if container is None:
        return 1.0

    fill = container.select_one(ASPECT_RATIO_FILL_SELECTOR)
    if fill is None:
        return 1.0

    match = _PADDING_BOTTOM.search(str(fill.get("style") or ""))
    if not match:
        return 1.0
    return float(match.group(1)) / 100
