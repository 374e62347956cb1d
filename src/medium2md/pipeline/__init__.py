"""Pipeline architecture for post conversion."""

from .base import ArticleContext, ArticleStep, EventEmitter, FetchPipeline

__all__ = ["ArticleContext", "ArticleStep", "EventEmitter", "FetchPipeline"]
