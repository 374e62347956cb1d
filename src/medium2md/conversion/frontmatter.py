"""YAML front-matter for converted posts."""

from __future__ import annotations

import json

from ..models.post import PostMetadata


class FrontmatterBuilder:
    """
    Builds the front-matter block that opens ``index.md``.

    Strings that may contain arbitrary text (title, description) are
    emitted as JSON strings, which YAML reads as double-quoted scalars.

    Example:
        builder = FrontmatterBuilder()
        frontmatter = builder.build(metadata)
        document = builder.compose(metadata, body)
    """

    def build(self, metadata: PostMetadata) -> str:
        """
        Build the front-matter string.

        Args:
            metadata: Post metadata

        Returns:
            Front-matter with ``---`` delimiters, followed by a blank line
        """
        lines = [
            "---",
            f"title: {json.dumps(metadata.title, ensure_ascii=False)}",
            f"description: {json.dumps(metadata.description, ensure_ascii=False)}",
            f'date: "{metadata.date}"',
        ]

        if metadata.categories:
            lines.append("categories:")
            for category in metadata.categories:
                lines.append(f"  - {json.dumps(category, ensure_ascii=False)}")
        else:
            lines.append("categories: []")

        lines.append(f"published: {'true' if metadata.published else 'false'}")

        if metadata.canonical_link:
            lines.append(f"canonical_link: {metadata.canonical_link}")

        if metadata.redirect_from:
            lines.append("redirect_from:")
            for path in metadata.redirect_from:
                lines.append(f"  - {path}")

        lines.append("---")
        return "\n".join(lines) + "\n\n"

    def compose(self, metadata: PostMetadata, body: str) -> str:
        """Full ``index.md`` text: front-matter, body and a trailing newline."""
        return f"{self.build(metadata)}{body}\n"
