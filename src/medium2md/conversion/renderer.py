"""Medium post content to Markdown rendering."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bs4 import Tag
from markdownify import ATX, MarkdownConverter

from ..assets.collector import AssetCollector
from ..embeds.resolver import EmbedResolver
from . import rules

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """
    Output of one render pass.

    Attributes:
        markdown: Rendered text, possibly containing embed placeholders
        embed_keys: Embed source keys the render touched, in first-seen order
    """

    markdown: str
    embed_keys: list[str] = field(default_factory=list)


class ArticleRenderer(MarkdownConverter):
    """
    Single-pass, synchronous renderer for a post's content subtree.

    Generic elements go through markdownify; code blocks, inline code,
    figures, images and iframes go through the rules in
    ``medium2md.conversion.rules``. Iframes register with the embed
    resolver and CDN images with the asset collector as a side effect;
    neither ever waits on the network.

    Example:
        renderer = ArticleRenderer(resolver, AssetCollector(http_client))
        result = renderer.render(soup.select_one(".postArticle-content"))
        # result.markdown may contain placeholders for result.embed_keys
    """

    class Options(MarkdownConverter.DefaultOptions):
        heading_style = ATX
        bullets = "-"

    def __init__(self, resolver: EmbedResolver, assets: AssetCollector, **options):
        super().__init__(**options)
        self._resolver = resolver
        self._assets = assets
        self._embed_keys: list[str] = []

    def render(self, node: Tag) -> RenderResult:
        """
        Render a content subtree to Markdown.

        Args:
            node: Root of the post content

        Returns:
            RenderResult with the text and the embed keys it references
        """
        self._embed_keys = []
        markdown = self.convert_soup(node).strip()
        return RenderResult(markdown=markdown, embed_keys=list(dict.fromkeys(self._embed_keys)))

    def _embed(self, iframe: Tag, caption: str = "") -> str:
        source_key = iframe.get("src")
        if not isinstance(source_key, str) or not source_key:
            logger.debug("Ignoring iframe without src")
            return ""
        self._embed_keys.append(source_key)
        return self._resolver.resolve_or_register(
            source_key,
            caption,
            aspect_ratio=rules.aspect_ratio_of(iframe),
        )

    def blank_replacement(self, node: Tag) -> str:
        """Output for a block that rendered no content of its own."""
        if node.name == "figure":
            iframe = node.find("iframe")
            if isinstance(iframe, Tag):
                return self._embed(iframe)
        if node.name == "iframe":
            return self._embed(node)
        return "\n\n"

    def convert_iframe(self, el, text, parent_tags):
        return self._embed(el)

    def convert_figure(self, el, text, parent_tags):
        iframe = el.find("iframe")
        if isinstance(iframe, Tag):
            return self._embed(iframe, rules.figure_caption(el))

        if not text.strip():
            return self.blank_replacement(el)

        element = rules.figure_image_line(text)
        if element is None:
            return "\n\n"
        return f"\n\n{rules.splice_caption(element, rules.figure_caption(el))}\n\n"

    def convert_figcaption(self, el, text, parent_tags):
        text = text.strip()
        return f"\n\n{text}\n\n" if text else ""

    def convert_pre(self, el, text, parent_tags):
        return rules.render_code_block(el)

    def convert_code(self, el, text, parent_tags):
        if "pre" in parent_tags:
            return text
        return rules.render_inline_code(text)

    def convert_img(self, el, text, parent_tags):
        alt = el.get("alt") or ""
        src = el.get("src") or ""
        title = el.get("title") or ""

        if rules.is_cdn_image(src):
            src = f"./{self._assets.enqueue(src)}"

        return rules.render_image(src, alt, title)
