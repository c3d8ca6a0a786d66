"""Build configuration: env-driven via pydantic-settings.

Reads from a .env file and ACORNFORGE_* environment variables. Every path
the pipeline touches is derived from ``base_dir`` so that a checkout can be
built from anywhere.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from acornforge import distro


class BuildSettings(BaseSettings):
    """Build configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ACORNFORGE_BASE_DIR=/srv/acornos
        export ACORNFORGE_LOG_LEVEL=DEBUG
        export ACORNFORGE_ARTIFACT_STORE_PATH=/var/cache/acornforge

    Disable the cross-run artifact store::

        export ACORNFORGE_ARTIFACT_STORE_PATH=none
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACORNFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
        env_parse_none_str="none",
    )

    # Runtime
    log_level: str = "INFO"
    debug: bool = False

    # Project layout
    base_dir: Path = Path(".")

    # Cross-run cache, shared between checkouts. None disables it.
    artifact_store_path: Path | None = Path.home() / ".cache" / "acornforge" / "artifacts"

    # External collaborators
    dependency_lister: str = "ldd"

    # Image parameters
    iso_label: str = distro.ISO_LABEL
    erofs_compression: str = distro.EROFS_COMPRESSION
    erofs_compression_level: int = distro.EROFS_COMPRESSION_LEVEL
    erofs_chunk_size: int = distro.EROFS_CHUNK_SIZE
    cpio_gzip_level: int = distro.CPIO_GZIP_LEVEL

    @property
    def downloads_dir(self) -> Path:
        return self.base_dir / "downloads"

    @property
    def source_rootfs(self) -> Path:
        """The extracted upstream (Alpine) root filesystem."""
        return self.downloads_dir / "rootfs"

    @property
    def output_dir(self) -> Path:
        return self.base_dir / "output"


# Module-level singleton, import as `from acornforge.config import settings`
settings = BuildSettings()
