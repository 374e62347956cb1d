"""Tests for the conversion pipeline and its steps."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml
from bs4 import BeautifulSoup
from medium2md.assets.collector import AssetCollector
from medium2md.conversion.frontmatter import FrontmatterBuilder
from medium2md.embeds.resolver import EmbedResolver
from medium2md.errors import FetchError, MissingRequiredMetadata
from medium2md.models.events import EventType
from medium2md.models.post import PostMetadata
from medium2md.pipeline.base import ArticleContext, FetchPipeline
from medium2md.pipeline.steps import (
    DraftMetadataStep,
    FetchStep,
    RemoteMetadataStep,
    RenderStep,
    ResolveStep,
    ResponseFilterStep,
    SaveStep,
    UntitledCounter,
)
from medium2md.pipeline.steps.metadata import utc_timestamp

POST_URL = "https://medium.com/@someone/hello-world-1a2b3c"

POST_HTML = """
<html><head>
<meta name="description" content="A short greeting">
<meta property="article:published_time" content="2017-03-04T05:06:07.000Z">
<link rel="canonical" href="https://blog.example.com/hello-world-1a2b3c">
</head><body>
<div class="js-postMetaLockup">by someone</div>
<div class="postArticle-content">
<div class="section-divider"><hr></div>
<h3 class="graf--title">Hello, World!</h3>
<p>First paragraph.</p>
</div>
<ul class="js-postTags"><li>Python</li><li>Markdown</li></ul>
</body></html>
"""

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_context(http_client, source=POST_URL, soup=None, content_folder=Path("/tmp/content")):
    return ArticleContext(
        source=source,
        content_folder=content_folder,
        assets=AssetCollector(http_client),
        soup=soup,
    )


class TestArticleContext:
    """Tests for ArticleContext dataclass."""

    def test_create_context(self, http_client):
        ctx = make_context(http_client)
        assert ctx.source == POST_URL
        assert ctx.soup is None
        assert ctx.markdown is None
        assert ctx.embed_keys == []
        assert ctx.should_skip is False
        assert ctx.error is None


class RecordingStep:
    """Step that records calls and optionally skips or fails."""

    def __init__(self, name, skip=False, error=None):
        self.name = name
        self.skip = skip
        self.error = error
        self.calls = 0

    async def execute(self, ctx, emit=None):
        self.calls += 1
        if self.error:
            raise self.error
        if self.skip:
            ctx.should_skip = True
            ctx.skip_reason = "skipped"
        return ctx


class TestFetchPipeline:
    """Tests for FetchPipeline."""

    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self, http_client):
        first, second = RecordingStep("first"), RecordingStep("second")
        pipeline = FetchPipeline(steps=[first]).add_step(second)

        ctx = await pipeline.execute(make_context(http_client))

        assert (first.calls, second.calls) == (1, 1)
        assert ctx.error is None

    @pytest.mark.asyncio
    async def test_skip_stops_pipeline(self, http_client):
        first, second = RecordingStep("first", skip=True), RecordingStep("second")

        ctx = await FetchPipeline(steps=[first, second]).execute(make_context(http_client))

        assert ctx.should_skip is True
        assert ctx.skip_reason == "skipped"
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_error_captured_and_reported(self, http_client):
        failing = RecordingStep("render", error=RuntimeError("broken"))
        after = RecordingStep("save")
        emit = MagicMock()

        ctx = await FetchPipeline(steps=[failing, after]).execute(make_context(http_client), emit)

        assert isinstance(ctx.error, RuntimeError)
        assert ctx.should_skip is True
        assert after.calls == 0
        event = emit.call_args[0][0]
        assert event.type == EventType.FAILED
        assert event.error == "render: broken"


class TestFetchStep:
    """Tests for FetchStep."""

    @pytest.mark.asyncio
    async def test_parses_document(self, http_client):
        http_client.routes[POST_URL] = POST_HTML
        emit = MagicMock()

        ctx = await FetchStep(http_client).execute(make_context(http_client), emit)

        assert ctx.soup.select_one(".postArticle-content") is not None
        types = [call[0][0].type for call in emit.call_args_list]
        assert types == [EventType.FETCH_STARTED, EventType.FETCH_COMPLETED]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, http_client):
        with pytest.raises(FetchError) as exc_info:
            await FetchStep(http_client).execute(make_context(http_client))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_fetch_error_left_to_importer_to_log(self, http_client, monkeypatch):
        """Test the step raises without logging, so the failure is logged once."""
        logger = MagicMock()
        monkeypatch.setattr("medium2md.pipeline.steps.fetch.logger", logger)

        with pytest.raises(FetchError):
            await FetchStep(http_client).execute(make_context(http_client))

        logger.error.assert_not_called()


class TestResponseFilterStep:
    """Tests for ResponseFilterStep."""

    @pytest.mark.asyncio
    async def test_post_kept(self, http_client):
        soup = BeautifulSoup(POST_HTML, "html.parser")
        ctx = await ResponseFilterStep().execute(make_context(http_client, soup=soup))

        assert ctx.should_skip is False
        assert ctx.content is soup.select_one(".postArticle-content")

    @pytest.mark.asyncio
    async def test_response_marker_skipped(self, http_client):
        soup = BeautifulSoup(
            '<div class="postArticle postArticle--response"><div class="postArticle-content">Nice post!</div></div>',
            "html.parser",
        )
        emit = MagicMock()
        ctx = await ResponseFilterStep().execute(make_context(http_client, soup=soup), emit)

        assert ctx.should_skip is True
        assert ctx.skip_reason == "Response to another post"
        assert emit.call_args[0][0].type == EventType.POST_SKIPPED

    @pytest.mark.asyncio
    async def test_missing_content_skipped(self, http_client):
        soup = BeautifulSoup("<html><body><p>Nothing</p></body></html>", "html.parser")
        ctx = await ResponseFilterStep().execute(make_context(http_client, soup=soup))

        assert ctx.should_skip is True
        assert ctx.content is None


class TestRemoteMetadataStep:
    """Tests for RemoteMetadataStep."""

    @pytest.mark.asyncio
    async def test_extracts_metadata(self, http_client):
        soup = BeautifulSoup(POST_HTML, "html.parser")
        ctx = await RemoteMetadataStep().execute(make_context(http_client, soup=soup))

        assert ctx.slug == "hello-world"
        assert ctx.metadata == PostMetadata(
            title="Hello, World!",
            description="A short greeting",
            date="2017-03-04T05:06:07.000Z",
            categories=["Python", "Markdown"],
            published=True,
            canonical_link="https://blog.example.com/hello-world-1a2b3c",
            redirect_from=["/hello-world-1a2b3c"],
        )

    @pytest.mark.asyncio
    async def test_removes_title_and_chrome(self, http_client):
        soup = BeautifulSoup(POST_HTML, "html.parser")
        await RemoteMetadataStep().execute(make_context(http_client, soup=soup))

        assert soup.select_one(".graf--title") is None
        assert soup.select_one(".section-divider") is None
        assert soup.select_one(".js-postMetaLockup") is None
        assert "First paragraph." in soup.get_text()

    @pytest.mark.asyncio
    async def test_untitled_post_uses_url_segment(self, http_client):
        soup = BeautifulSoup(POST_HTML.replace('class="graf--title"', 'class="graf--h3"'), "html.parser")
        ctx = await RemoteMetadataStep().execute(make_context(http_client, soup=soup))

        assert ctx.metadata.title == ""
        assert ctx.slug == "hello-world-1a2b3c"

    @pytest.mark.asyncio
    async def test_canonical_link_defaults_to_url(self, http_client):
        soup = BeautifulSoup(POST_HTML.replace('rel="canonical"', 'rel="alternate"'), "html.parser")
        ctx = await RemoteMetadataStep().execute(make_context(http_client, soup=soup))

        assert ctx.metadata.canonical_link == POST_URL

    @pytest.mark.asyncio
    async def test_missing_description(self, http_client):
        soup = BeautifulSoup(POST_HTML.replace('name="description"', 'name="keywords"'), "html.parser")

        with pytest.raises(MissingRequiredMetadata) as exc_info:
            await RemoteMetadataStep().execute(make_context(http_client, soup=soup))
        assert exc_info.value.url == POST_URL

    @pytest.mark.asyncio
    async def test_missing_publish_date(self, http_client):
        soup = BeautifulSoup(POST_HTML.replace("article:published_time", "article:modified_time"), "html.parser")

        with pytest.raises(MissingRequiredMetadata):
            await RemoteMetadataStep().execute(make_context(http_client, soup=soup))
        assert soup.select_one(".graf--title") is not None


class TestDraftMetadataStep:
    """Tests for DraftMetadataStep."""

    DRAFT_HTML = """
    <html><body><article>
    <h1 class="p-name">My Draft</h1>
    <section data-field="subtitle" class="p-summary">A subtitle</section>
    <section data-field="body" class="e-content">
    <div class="section-divider"><hr></div>
    <h3 class="graf--title">My Draft</h3>
    <h4 class="graf--subtitle">A subtitle</h4>
    <p>Draft body.</p>
    </section>
    </article></body></html>
    """

    @pytest.mark.asyncio
    async def test_extracts_metadata(self, http_client):
        soup = BeautifulSoup(self.DRAFT_HTML, "html.parser")
        step = DraftMetadataStep(UntitledCounter(), clock=lambda: FIXED_NOW)
        ctx = await step.execute(make_context(http_client, source="draft.html", soup=soup))

        assert ctx.slug == "my-draft"
        assert ctx.metadata == PostMetadata(
            title="My Draft",
            description="A subtitle",
            date="2024-01-02T03:04:05.000Z",
            published=False,
        )
        assert ctx.content is soup.select_one(".e-content")

    @pytest.mark.asyncio
    async def test_removes_title_nodes(self, http_client):
        soup = BeautifulSoup(self.DRAFT_HTML, "html.parser")
        step = DraftMetadataStep(UntitledCounter(), clock=lambda: FIXED_NOW)
        await step.execute(make_context(http_client, source="draft.html", soup=soup))

        for selector in (".p-name", ".graf--title", ".graf--subtitle", ".section-divider"):
            assert soup.select_one(selector) is None
        assert soup.select_one(".e-content").get_text().strip() == "Draft body."

    @pytest.mark.asyncio
    async def test_untitled_drafts_numbered(self, http_client):
        step = DraftMetadataStep(UntitledCounter(), clock=lambda: FIXED_NOW)
        titles = []
        for _ in range(2):
            soup = BeautifulSoup('<div class="e-content"><p>Body</p></div>', "html.parser")
            ctx = await step.execute(make_context(http_client, source="draft", soup=soup))
            titles.append((ctx.metadata.title, ctx.slug))

        assert titles == [
            ("Untitled Draft 1", "untitled-draft-1"),
            ("Untitled Draft 2", "untitled-draft-2"),
        ]

    @pytest.mark.asyncio
    async def test_missing_body_skipped(self, http_client):
        counter = UntitledCounter()
        soup = BeautifulSoup("<p>Not a draft</p>", "html.parser")
        ctx = await DraftMetadataStep(counter).execute(make_context(http_client, source="x", soup=soup))

        assert ctx.should_skip is True
        assert counter.next_title() == "Untitled Draft 1"

    def test_utc_timestamp(self):
        assert utc_timestamp(FIXED_NOW) == "2024-01-02T03:04:05.000Z"
        assert utc_timestamp().endswith("Z")


class TestRenderAndResolve:
    """Tests for RenderStep and ResolveStep together."""

    @pytest.mark.asyncio
    async def test_placeholders_substituted(self, http_client):
        http_client.routes["https://medium.com/media/abc"] = (
            '<script src="https://gist.github.com/someone/1.js"></script>'
        )
        resolver = EmbedResolver(http_client)
        soup = BeautifulSoup(
            '<div class="postArticle-content"><p>Look:</p>'
            '<figure><iframe src="/media/abc"></iframe><figcaption>A gist</figcaption></figure></div>',
            "html.parser",
        )
        ctx = make_context(http_client, soup=soup)
        ctx.content = soup.div
        emit = MagicMock()

        ctx = await RenderStep(resolver).execute(ctx, emit)
        assert ctx.embed_keys == ["/media/abc"]
        assert "Embed placeholder" in ctx.markdown

        ctx = await ResolveStep(resolver).execute(ctx, emit)
        assert ctx.markdown == (
            'Look:\n\n<Embed src="https://gist.github.com/someone/1.js" aspectRatio={1} caption="A gist" />'
        )
        resolved = emit.call_args[0][0]
        assert resolved.type == EventType.EMBEDS_RESOLVED
        assert (resolved.embeds_resolved, resolved.embeds_failed) == (1, 0)

    @pytest.mark.asyncio
    async def test_failed_embed_removed(self, http_client):
        resolver = EmbedResolver(http_client)
        soup = BeautifulSoup('<div><p>Before</p><iframe src="/media/gone"></iframe><p>After</p></div>', "html.parser")
        ctx = make_context(http_client, soup=soup)
        ctx.content = soup.div
        emit = MagicMock()

        ctx = await RenderStep(resolver).execute(ctx)
        ctx = await ResolveStep(resolver).execute(ctx, emit)

        assert "Embed placeholder" not in ctx.markdown
        assert ctx.markdown.startswith("Before")
        assert ctx.markdown.endswith("After")
        assert emit.call_args[0][0].embeds_failed == 1

    @pytest.mark.asyncio
    async def test_render_requires_content(self, http_client):
        with pytest.raises(ValueError):
            await RenderStep(EmbedResolver(http_client)).execute(make_context(http_client))


class TestSaveStep:
    """Tests for SaveStep."""

    @pytest.mark.asyncio
    async def test_writes_index(self, http_client, tmp_path):
        ctx = make_context(http_client, content_folder=tmp_path)
        ctx.slug = "post"
        ctx.markdown = "Body text"
        ctx.metadata = PostMetadata(title="T", description="D", date="2024-01-01T00:00:00.000Z")
        emit = MagicMock()

        ctx = await SaveStep().execute(ctx, emit)

        assert ctx.output_path == tmp_path.resolve() / "post" / "index.md"
        assert ctx.output_path.read_text(encoding="utf-8") == (
            "---\n"
            'title: "T"\n'
            'description: "D"\n'
            'date: "2024-01-01T00:00:00.000Z"\n'
            "categories: []\n"
            "published: false\n"
            "---\n"
            "\n"
            "Body text\n"
        )
        assert emit.call_args[0][0].type == EventType.POST_SAVED

    @pytest.mark.asyncio
    async def test_writes_images(self, http_client, tmp_path):
        http_client.routes["https://cdn-images-1.medium.com/a.gif"] = b"GIF89a"
        ctx = make_context(http_client, content_folder=tmp_path)
        ctx.assets.enqueue("https://cdn-images-1.medium.com/a.gif")
        ctx.slug = "post"
        ctx.markdown = "![](./asset-1.gif)"
        ctx.metadata = PostMetadata(title="T", description="", date="2024-01-01T00:00:00.000Z")
        emit = MagicMock()

        ctx = await SaveStep().execute(ctx, emit)

        assert (tmp_path / "post" / "asset-1.gif").read_bytes() == b"GIF89a"
        types = [call[0][0].type for call in emit.call_args_list]
        assert types == [EventType.ASSET_SAVED, EventType.POST_SAVED]

    @pytest.mark.asyncio
    async def test_rejects_escaping_slug(self, http_client, tmp_path):
        ctx = make_context(http_client, content_folder=tmp_path / "content")
        ctx.slug = "../outside"
        ctx.markdown = "Body"
        ctx.metadata = PostMetadata(title="T", description="", date="2024-01-01T00:00:00.000Z")

        with pytest.raises(ValueError):
            await SaveStep().execute(ctx)
        assert not (tmp_path / "outside").exists()


class TestFrontmatterBuilder:
    """Tests for FrontmatterBuilder."""

    def test_full_metadata(self):
        metadata = PostMetadata(
            title='Say "hi"',
            description="Ünïcode stays",
            date="2017-03-04T05:06:07.000Z",
            categories=["Python", "Web"],
            published=True,
            canonical_link="https://medium.com/@someone/say-hi-1a2b",
            redirect_from=["/say-hi-1a2b"],
        )

        assert FrontmatterBuilder().build(metadata) == (
            "---\n"
            'title: "Say \\"hi\\""\n'
            'description: "Ünïcode stays"\n'
            'date: "2017-03-04T05:06:07.000Z"\n'
            "categories:\n"
            '  - "Python"\n'
            '  - "Web"\n'
            "published: true\n"
            "canonical_link: https://medium.com/@someone/say-hi-1a2b\n"
            "redirect_from:\n"
            "  - /say-hi-1a2b\n"
            "---\n"
            "\n"
        )

    def test_compose_appends_newline(self):
        metadata = PostMetadata(title="T", description="", date="d")
        assert FrontmatterBuilder().compose(metadata, "Body").endswith("---\n\nBody\n")

    def test_categories_stay_strings(self):
        """Test tags YAML would otherwise read as mappings, booleans or numbers."""
        metadata = PostMetadata(title="T", description="", date="d", categories=["C#: tips", "yes", "2017"])

        text = FrontmatterBuilder().build(metadata)

        assert '  - "C#: tips"\n  - "yes"\n  - "2017"\n' in text
        assert yaml.safe_load(text.strip().strip("-"))["categories"] == ["C#: tips", "yes", "2017"]
