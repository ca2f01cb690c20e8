# compiler/config.py
"""
Compiler configuration.

Settings come from three places, highest priority first:
1. Command-line flags
2. peakconfig.json in the source directory (optional)
3. Defaults: co-located output, API version 65.0

peakconfig.json:

    {
      "compilerOptions": {
        "outDir": "build", "rootDir": ".", "apiVersion": "65.0", "verbose": false,
        "instantiate": {
          "classes": {"Queue": ["Integer", "String"], "Dict": ["String, Integer"]},
          "methods": {"Collection.groupBy": ["String"]}
        }
      }
    }
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from peak_lang.internals.errors import ConfigError

CONFIG_FILE_NAME = "peakconfig.json"
DEFAULT_API_VERSION = "65.0"

META_XML_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<ApexClass xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>{api_version}</apiVersion>
    <status>Active</status>
</ApexClass>
"""


@dataclass
class InstantiateSpec:
    """Forced instantiations: name -> list of type-argument strings."""
    classes: Dict[str, List[str]] = field(default_factory=dict)
    methods: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class CLIFlags:
    root_dir: Optional[str] = None
    out_dir: Optional[str] = None
    api_version: Optional[str] = None
    watch: bool = False
    verbose: bool = False
    write_meta: bool = True


@dataclass
class Config:
    """Runtime configuration; directories are absolute once loaded."""
    source_dir: str
    root_dir: Optional[str] = None
    out_dir: Optional[str] = None
    api_version: str = DEFAULT_API_VERSION
    watch: bool = False
    verbose: bool = False
    write_meta: bool = True
    instantiate: InstantiateSpec = field(default_factory=InstantiateSpec)

    def resolve_output_path(self, source_path: str, output_extension: str = ".cls") -> str:
        """Output path for `source_path`.

        Without an output directory the result sits next to the source. With
        one, the source's directory relative to `root_dir` (or `source_dir`)
        is kept below `out_dir`; sources outside that base land flat in
        `out_dir`.
        """
        name = os.path.splitext(os.path.basename(source_path))[0] + output_extension

        if not self.out_dir:
            return os.path.join(os.path.dirname(source_path), name)

        base_dir = self.root_dir or self.source_dir
        source_dir = os.path.dirname(os.path.abspath(source_path))
        try:
            rel_dir = os.path.relpath(source_dir, base_dir)
        except ValueError:
            # Different drive on Windows
            return os.path.join(self.out_dir, name)

        if rel_dir == os.pardir or rel_dir.startswith(os.pardir + os.sep):
            return os.path.join(self.out_dir, name)
        return os.path.normpath(os.path.join(self.out_dir, rel_dir, name))

    def generate_meta_xml(self) -> str:
        return META_XML_TEMPLATE.format(api_version=self.api_version)


def load_config(source_dir: str, flags: Optional[CLIFlags] = None) -> Config:
    """Build the configuration for compiling `source_dir`.

    Raises:
        ConfigError: peakconfig.json exists but cannot be read, is not valid
            JSON, or has the wrong shape.
    """
    flags = flags or CLIFlags()
    abs_source = os.path.abspath(source_dir)
    cfg = Config(source_dir=abs_source)

    config_path = os.path.join(abs_source, CONFIG_FILE_NAME)
    if os.path.isfile(config_path):
        _apply_config_file(cfg, config_path)

    if flags.root_dir:
        cfg.root_dir = flags.root_dir
    if flags.out_dir:
        cfg.out_dir = flags.out_dir
    if flags.api_version:
        cfg.api_version = flags.api_version
    if flags.watch:
        cfg.watch = True
    if flags.verbose:
        cfg.verbose = True
    if not flags.write_meta:
        cfg.write_meta = False

    # Relative directories are relative to the source directory
    if cfg.root_dir:
        cfg.root_dir = os.path.normpath(os.path.join(abs_source, cfg.root_dir))
    if cfg.out_dir:
        cfg.out_dir = os.path.normpath(os.path.join(abs_source, cfg.out_dir))

    return cfg


def _apply_config_file(cfg: Config, path: str) -> None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"error loading config file {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"error loading config file {path}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"error loading config file {path}: top level must be an object")
    options = data.get("compilerOptions", {})
    if not isinstance(options, dict):
        raise ConfigError(f"error loading config file {path}: 'compilerOptions' must be an object")

    for key in ("rootDir", "outDir", "apiVersion"):
        if key in options and not isinstance(options[key], str):
            raise ConfigError(f"error loading config file {path}: '{key}' must be a string")
    if "verbose" in options and not isinstance(options["verbose"], bool):
        raise ConfigError(f"error loading config file {path}: 'verbose' must be true or false")

    if options.get("rootDir"):
        cfg.root_dir = options["rootDir"]
    if options.get("outDir"):
        cfg.out_dir = options["outDir"]
    if options.get("apiVersion"):
        cfg.api_version = options["apiVersion"]
    cfg.verbose = options.get("verbose", False)

    instantiate = options.get("instantiate", {})
    if not isinstance(instantiate, dict):
        raise ConfigError(f"error loading config file {path}: 'instantiate' must be an object")
    cfg.instantiate = InstantiateSpec(
        classes=_string_lists(instantiate.get("classes", {}), "instantiate.classes", path),
        methods=_string_lists(instantiate.get("methods", {}), "instantiate.methods", path),
    )
    for key in cfg.instantiate.methods:
        owner, dot, method = key.partition(".")
        if not dot or not owner or not method or "." in method:
            raise ConfigError(f"error loading config file {path}: method key '{key}' must look like 'ClassName.methodName'")


def _string_lists(value: Any, where: str, path: str) -> Dict[str, List[str]]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"error loading config file {path}: '{where}' must be an object")
    result: Dict[str, List[str]] = {}
    for name, items in value.items():
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            raise ConfigError(f"error loading config file {path}: '{where}.{name}' must be a list of strings")
        result[name] = list(items)
    return result
