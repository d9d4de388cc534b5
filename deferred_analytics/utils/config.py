import ast
from pathlib import Path, PurePath
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

import yaml

from deferred_analytics.typing import Params, PathType

from .pydantic_utils import BaseModelExtraForbid

T = TypeVar("T", bound="Config")


class Config(BaseModelExtraForbid):
    """Base class for configuration models loaded from YAML."""

    @classmethod
    def get_config(
        cls: Type[T],
        cfg: Optional[Union[PathType, Params]] = None,
        overrides: Optional[Union[Params, List[str], Tuple[str, ...]]] = None,
    ) -> T:
        """Loads config from a yaml file or a dictionary.

        @type cfg: Optional[Union[str, Path, dict]]
        @param cfg: Path to config file or a dictionary.
        @type overrides: Optional[Union[dict, list[str], tuple[str, ...]]]
        @param overrides: List of CLI overrides in a form of a dictionary mapping
            "dotted" keys to unparsed string or python values.
        @rtype: Config
        @return: Instance of the config class.
        @raise ValueError: If neither C{cfg} nor C{overrides} are provided.
        @raise FileNotFoundError: If C{cfg} is a path that does not exist.
        """
        if cfg is None and overrides is None:
            raise ValueError(
                "At least one of `cfg` or `overrides` must be set."
            )

        if isinstance(overrides, (list, tuple)):
            if len(overrides) % 2 != 0:
                raise ValueError(
                    "Override options should be a list of key-value pairs "
                    "but it's length is not divisible by 2."
                )

            overrides = dict(zip(overrides[::2], overrides[1::2]))

        overrides = overrides or {}
        cfg = cfg or {}

        if isinstance(cfg, (str, Path)):
            with open(cfg, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            data = dict(cfg)

        cls._merge_overrides(data, overrides)
        return cls(**data)

    def __str__(self) -> str:
        return self.model_dump_json(indent=4)

    def __repr__(self) -> str:
        return self.__str__()

    def save_data(self, path: PathType) -> None:
        """Saves config to a yaml file.

        @type path: str
        @param path: Path to output yaml file.
        """

        def path_representer(
            dumper: yaml.SafeDumper, data: PurePath
        ) -> yaml.ScalarNode:
            return dumper.represent_scalar("tag:yaml.org,2002:str", str(data))

        yaml.SafeDumper.add_multi_representer(PurePath, path_representer)

        with open(path, "w+") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"), f, default_flow_style=False
            )

    def get(self, key_merged: str, default: Any = None) -> Any:
        """Returns a value from the config based on the given key.

        If the key doesn't exist, the default value is returned.

        @type key_merged: str
        @param key_merged: Key in a form of a string with levels
            separated by dots, I{e.g.} C{"app.analytics.backend"}.
        @type default: Any
        @param default: Default value to return if the key doesn't
            exist or any of its parents is C{None}.
        @rtype: Any
        @return: Value of the key or default value.
        """
        value = self
        for key in key_merged.split("."):
            if value is None:
                return default
            if isinstance(value, dict):
                if key not in value:
                    return default
                value = value[key]
            else:
                if not hasattr(value, key):
                    return default
                value = getattr(value, key)
        return default if value is None else value

    @staticmethod
    def _merge_overrides(data: Params, overrides: Params) -> None:
        """Merges the config dictionary with the CLI overrides.

        The overrides are a dictionary mapping "dotted" keys to either
        final or unparsed values. Missing intermediate levels are
        created as dictionaries.

        @type data: dict
        @param data: Dictionary with config data.
        @type overrides: dict
        @param overrides: Dictionary with CLI overrides.
        @raise ValueError: If the overrides contain an invalid option.
        """

        def _parse_value(value: Any) -> Any:
            if not isinstance(value, str):
                return value

            try:
                return ast.literal_eval(value)
            except (ValueError, SyntaxError):
                # keep as string and hope for the best
                return value

        def _merge_recursive(data: Dict, dot_name: str, value: Any) -> None:
            key, *tail = dot_name.split(".")
            if not isinstance(data, dict):
                raise ValueError(
                    "Only dict values can be accessed with string keys"
                )
            if not tail:
                data[key] = _parse_value(value)
                return
            if data.get(key) is None:
                data[key] = {}
            _merge_recursive(data[key], ".".join(tail), value)

        for dot_name, value in overrides.items():
            try:
                _merge_recursive(data, dot_name, value)
            except Exception as e:
                raise ValueError(f"Invalid option `{dot_name}`: {e}") from e
