"""Configuration management for the variant annotator."""

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional


@dataclass
class FilterConfig:
    """Truncation and length filter settings."""
    stop_marker: str = "*"
    terminal_window: int = 35
    min_length_full: int = 199  # exclusive, records without a stop
    min_length_truncated: int = 169  # exclusive, records with a terminal stop


@dataclass
class ResolutionConfig:
    """Barcode collision resolution settings."""
    seed: Optional[int] = None


@dataclass
class OutputConfig:
    """Output configuration settings."""
    format: str = "tsv"
    include_audit_trail: bool = True
    excel_compatible: bool = True


@dataclass
class Config:
    """Main configuration container."""
    filter: FilterConfig
    resolution: ResolutionConfig
    output: OutputConfig

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            filter=FilterConfig(),
            resolution=ResolutionConfig(),
            output=OutputConfig()
        )

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from JSON file."""
        if not path.exists():
            return cls.default()

        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            filter=FilterConfig(**data.get('filter', {})),
            resolution=ResolutionConfig(**data.get('resolution', {})),
            output=OutputConfig(**data.get('output', {}))
        )

    def to_file(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'filter': asdict(self.filter),
            'resolution': asdict(self.resolution),
            'output': asdict(self.output)
        }

        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    def merge_env_vars(self) -> None:
        """Merge environment variables into configuration."""
        if os.getenv('VARIANT_ANNOTATOR_SEED'):
            self.resolution.seed = int(os.getenv('VARIANT_ANNOTATOR_SEED'))
        if os.getenv('VARIANT_ANNOTATOR_OUTPUT_FORMAT'):
            self.output.format = os.getenv('VARIANT_ANNOTATOR_OUTPUT_FORMAT')

    def merge_cli_args(self, **kwargs) -> None:
        """Merge CLI arguments into configuration."""
        if kwargs.get('seed') is not None:
            self.resolution.seed = kwargs['seed']

        if kwargs.get('output_format'):
            self.output.format = kwargs['output_format']
        if kwargs.get('no_audit'):
            self.output.include_audit_trail = False


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    locations = [
        Path.home() / '.variant_annotator' / 'config.json',
        Path.home() / '.config' / 'variant_annotator' / 'config.json',
        Path('.variant_annotator.json'),
        Path('variant_annotator.config.json')
    ]

    for path in locations:
        if path.exists():
            return path

    return Path.home() / '.variant_annotator' / 'config.json'


def create_example_config(path: Optional[Path] = None) -> Path:
    """Create an example configuration file."""
    if path is None:
        path = Path('variant_annotator.config.example.json')

    config = Config.default()
    config.resolution.seed = 42

    config.to_file(path)
    return path
