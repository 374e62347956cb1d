"""Pydantic configuration models for medium2md."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class NetworkConfig(BaseModel):
    """Configuration for HTTP client and network behavior."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    max_retries: int = Field(
        0,
        ge=0,
        description="Transport-level retry attempts (0 = a failed fetch is final)",
    )
    read_timeout: int = Field(30, ge=1, description="Timeout for fetching a post, in seconds")
    embed_timeout: float = Field(30.0, gt=0, description="Timeout for resolving one embed, in seconds")
    asset_timeout: float = Field(60.0, gt=0, description="Timeout for downloading one image, in seconds")
    rate_limit: float = Field(0.0, ge=0, description="Minimum seconds between requests to the same host")
    per_host_concurrent: int = Field(5, ge=1, description="Maximum concurrent requests per host")

    model_config = {"extra": "forbid"}


class CrawlConfig(BaseModel):
    """Configuration for converting several posts in one run."""

    max_concurrent: int = Field(4, ge=1, description="Posts converted concurrently")

    model_config = {"extra": "forbid"}


class ImporterConfig(BaseModel):
    """
    Root configuration model for medium2md.

    Example:
        config = ImporterConfig(
            content_folder=Path("./content/blog"),
            network=NetworkConfig(embed_timeout=10),
        )

    YAML format:
        content_folder: ./content/blog
        network:
          embed_timeout: 10
          rate_limit: 0.2
        crawl:
          max_concurrent: 2
    """

    content_folder: Path = Field(Path("./content"), description="Folder receiving one directory per post")
    medium_base_url: str = Field(
        "https://medium.com",
        description="Origin prepended to relative embed frame sources",
    )

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ImporterConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "ImporterConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
