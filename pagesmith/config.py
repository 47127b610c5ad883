"""Configuration loading for pagesmith (.pagesmith.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".pagesmith.yml"

DEFAULT_RENDER_COMMAND = "pandoc --standalone --from markdown --to html5 --css style.css"

FAILURE_POLICIES = ("continue", "fail-fast")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class SourcesConfig:
    """Which files under the project root count as documents."""

    include_extensions: List[str] = field(default_factory=lambda: [".md"])
    exclude_names: List[str] = field(default_factory=list)


@dataclass
class FragmentsConfig:
    """Shared header/footer fragments, relative to the project root."""

    header: str = "header.md"
    footer: str = "footer.md"


@dataclass
class OutputConfig:
    """Where rendered artifacts land and which extension they carry."""

    dir: str = "build"
    extension: str = "html"


@dataclass
class RendererConfig:
    """External renderer invocation. ``command=None`` passes text through."""

    command: Optional[str] = DEFAULT_RENDER_COMMAND
    timeout: Optional[float] = None


@dataclass
class BuildConfig:
    """Executor tuning."""

    failure_policy: str = "continue"
    jobs: Optional[int] = None
    deadline: Optional[float] = None


@dataclass
class PublishConfig:
    """Publish target: a git branch, or a plain directory when ``directory`` is set."""

    branch: str = "build"
    directory: Optional[Path] = None
    message: str = "Published."


@dataclass
class SiteConfig:
    """Represents the settings defined in .pagesmith.yml."""

    root: Path
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    fragments: FragmentsConfig = field(default_factory=FragmentsConfig)
    listings: List[str] = field(default_factory=list)
    copy: List[str] = field(default_factory=list)
    output: OutputConfig = field(default_factory=OutputConfig)
    renderer: RendererConfig = field(default_factory=RendererConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    templates_dir: Optional[Path] = None

    @property
    def output_root(self) -> Path:
        return self.root / self.output.dir

    @property
    def header_path(self) -> Path:
        return self.root / self.fragments.header

    @property
    def footer_path(self) -> Path:
        return self.root / self.fragments.footer


def load_config(config_path: Path) -> SiteConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        config = SiteConfig(root=root)
        validate_config(config)
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    sources = SourcesConfig()
    sources_data = _as_dict(data.get("sources"))
    if "include_extensions" in sources_data:
        sources.include_extensions = _as_str_list(sources_data.get("include_extensions"))
    sources.exclude_names = _as_str_list(sources_data.get("exclude_names"))

    fragments = FragmentsConfig()
    fragments_data = _as_dict(data.get("fragments"))
    fragments.header = _as_str(fragments_data.get("header")) or fragments.header
    fragments.footer = _as_str(fragments_data.get("footer")) or fragments.footer

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    output.dir = _as_str(output_data.get("dir")) or output.dir
    output.extension = _as_str(output_data.get("extension")) or output.extension

    renderer = RendererConfig()
    renderer_data = _as_dict(data.get("renderer"))
    if "command" in renderer_data:
        renderer.command = _as_str(renderer_data.get("command")) or None
    renderer.timeout = _as_float(renderer_data.get("timeout"))

    build = BuildConfig()
    build_data = _as_dict(data.get("build"))
    build.failure_policy = _as_str(build_data.get("failure_policy")) or build.failure_policy
    build.jobs = _as_int(build_data.get("jobs"))
    build.deadline = _as_float(build_data.get("deadline"))

    publish = PublishConfig()
    publish_data = _as_dict(data.get("publish"))
    publish.branch = _as_str(publish_data.get("branch")) or publish.branch
    publish.message = _as_str(publish_data.get("message")) or publish.message
    directory = _as_str(publish_data.get("directory"))
    publish.directory = (root / directory).resolve() if directory else None

    templates_dir_str = _as_str(data.get("templates_dir"))

    config = SiteConfig(
        root=root,
        sources=sources,
        fragments=fragments,
        listings=_as_str_list(data.get("listings")),
        copy=_as_str_list(data.get("copy")),
        output=output,
        renderer=renderer,
        build=build,
        publish=publish,
        templates_dir=root / templates_dir_str if templates_dir_str else None,
    )
    validate_config(config)
    return config


def apply_overrides(
    config: SiteConfig,
    *,
    output_dir: Optional[str] = None,
    jobs: Optional[int] = None,
    failure_policy: Optional[str] = None,
    deadline: Optional[float] = None,
) -> SiteConfig:
    """Apply command-line overrides in place and re-validate."""
    if output_dir is not None:
        config.output.dir = output_dir
    if jobs is not None:
        config.build.jobs = jobs
    if failure_policy is not None:
        config.build.failure_policy = failure_policy
    if deadline is not None:
        config.build.deadline = deadline
    validate_config(config)
    return config


def validate_config(config: SiteConfig) -> None:
    """Normalise and check values that the pipeline relies on."""
    extensions = [_normalise_extension(ext) for ext in config.sources.include_extensions]
    extensions = [ext for ext in extensions if ext != "."]
    if not extensions:
        raise ConfigError("sources.include_extensions must name at least one extension")
    config.sources.include_extensions = extensions

    config.output.extension = config.output.extension.strip().lstrip(".")
    if not config.output.extension:
        raise ConfigError("output.extension must not be empty")

    if not config.output.dir.strip():
        raise ConfigError("output.dir must not be empty")
    if config.output_root.resolve() == config.root.resolve():
        raise ConfigError("output.dir must differ from the project root")

    for name in (config.fragments.header, config.fragments.footer):
        _check_relative(name, "fragment")
    if config.fragments.header == config.fragments.footer:
        raise ConfigError("header and footer fragments must be different files")

    config.listings = [_check_relative(name, "listing") for name in config.listings]
    config.copy = [_check_relative(name, "copy") for name in config.copy]

    if config.build.failure_policy not in FAILURE_POLICIES:
        raise ConfigError(
            f"build.failure_policy must be one of {', '.join(FAILURE_POLICIES)}; "
            f"got {config.build.failure_policy!r}"
        )
    if config.build.jobs is not None and config.build.jobs < 1:
        raise ConfigError("build.jobs must be a positive integer")
    if config.build.deadline is not None and config.build.deadline <= 0:
        raise ConfigError("build.deadline must be a positive number of seconds")
    if config.renderer.timeout is not None and config.renderer.timeout <= 0:
        raise ConfigError("renderer.timeout must be a positive number of seconds")


def _check_relative(value: str, label: str) -> str:
    cleaned = value.strip().strip("/")
    posix = PurePosixPath(cleaned)
    if not cleaned or cleaned == "." or value.startswith("/") or ".." in posix.parts:
        raise ConfigError(f"Invalid {label} path {value!r}: must be relative to the project root")
    return posix.as_posix()


def _normalise_extension(value: str) -> str:
    value = value.strip()
    return value if value.startswith(".") else f".{value}"


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"Expected a number, got {value!r}") from None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Expected an integer, got {value!r}") from None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
