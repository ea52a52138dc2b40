"""
Configuration for fragmentation runs.

FragmentationSettings is created once (defaults, YAML file or CLI
options) and passed explicitly to FragmentationService. There is no
module level settings object.

Example YAML file:

    num_tasks: 8
    keep_last_fragment: false
    num_shards: 32
    pipeline_name: Pipeline
    output_format: csv
"""

import logging
import os

from fragsmart.io.yaml import YAMLFile
from fragsmart.utils.utils import ConfigurationError

logger = logging.getLogger(__name__)


class FragmentationSettings:
    """
    Settings container for fragmentation runs.

    Attributes:
        num_tasks (int): Number of parallel worker tasks per stage.
        keep_last_fragment (bool): Keep pipeline fragments that a later
            stage could not decompose any further.
        num_shards (int): Number of lock shards of the aggregation table.
        pipeline_name (str): Default name for pipeline runs.
        output_format (str): Result file format ('csv', 'xlsx', 'txt').
    """

    SUPPORTED_OUTPUT_FORMATS = ("csv", "xlsx", "txt")
    DEFAULT_PIPELINE_NAME = "Pipeline"
    DEFAULT_NUM_SHARDS = 32

    def __init__(
        self,
        num_tasks=None,
        keep_last_fragment=False,
        num_shards=DEFAULT_NUM_SHARDS,
        pipeline_name=DEFAULT_PIPELINE_NAME,
        output_format="csv",
    ):
        if num_tasks is None:
            num_tasks = os.cpu_count() or 1
        self.num_tasks = self.normalize_num_tasks(num_tasks)
        self.keep_last_fragment = bool(keep_last_fragment)
        num_shards = self.to_integer("num_shards", num_shards)
        if num_shards < 1:
            raise ConfigurationError(
                f"num_shards must be a positive integer, got {num_shards}."
            )
        self.num_shards = num_shards
        if not pipeline_name:
            raise ConfigurationError("pipeline_name must not be empty.")
        self.pipeline_name = pipeline_name
        output_format = str(output_format).lower().lstrip(".")
        if output_format not in self.SUPPORTED_OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unsupported output format: '{output_format}'. "
                f"Supported formats: {self.SUPPORTED_OUTPUT_FORMATS}"
            )
        self.output_format = output_format

    def __repr__(self):
        return f"{self.__class__.__name__}({self.to_dict()})"

    def __eq__(self, other):
        if not isinstance(other, FragmentationSettings):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @staticmethod
    def normalize_num_tasks(num_tasks):
        """Zero or negative worker counts are treated as one worker."""
        num_tasks = FragmentationSettings.to_integer("num_tasks", num_tasks)
        if num_tasks < 1:
            logger.warning(
                f"Requested {num_tasks} worker tasks, using 1 instead."
            )
            return 1
        return num_tasks

    @staticmethod
    def to_integer(key, value):
        """Convert a settings value to int, raising ConfigurationError."""
        if isinstance(value, bool):
            raise ConfigurationError(
                f"{key} must be an integer, got {value!r}."
            )
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"{key} must be an integer, got {value!r}."
            ) from e

    def to_dict(self):
        return {
            "num_tasks": self.num_tasks,
            "keep_last_fragment": self.keep_last_fragment,
            "num_shards": self.num_shards,
            "pipeline_name": self.pipeline_name,
            "output_format": self.output_format,
        }

    def copy(self, **overrides):
        """Return a new settings object with some values replaced."""
        values = self.to_dict()
        values.update(
            {
                key: value
                for key, value in overrides.items()
                if value is not None
            }
        )
        return type(self)(**values)

    @classmethod
    def from_dict(cls, data):
        """
        Build settings from a mapping.

        Args:
            data (dict): Settings values; missing keys keep their defaults.

        Raises:
            ConfigurationError: If the mapping contains unknown keys.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings must be a mapping, got {type(data).__name__}."
            )
        known = set(cls().to_dict())
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown fragmentation settings: {sorted(unknown)}"
            )
        return cls(**data)

    @classmethod
    def from_yaml(cls, filename):
        """
        Read settings from a YAML file.

        Args:
            filename (str): Path to the YAML file.

        Returns:
            FragmentationSettings: Settings with values from the file.
        """
        yaml_file = YAMLFile(filename=filename)
        settings = cls.from_dict(yaml_file.yaml_contents_dict)
        logger.debug(f"Loaded fragmentation settings from {filename}")
        return settings
