from __future__ import annotations

import argparse
import configparser
import os
import sys
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Mapping, Optional


DEFAULT_CONFIG_PATH = "companion.ini"

REMAP_SECTION = "ParameterRemapping"
INVERT_SECTION = "InvertParameters"
SETTINGS_SECTION = "Settings"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    max_parameter_message_rate: int = 300
    remap_parameters: bool = False
    enable_additional_logging: bool = False


@dataclass(frozen=True)
class BridgeConfig:
    """Loaded once at startup; read-only afterwards."""

    settings: Settings = field(default_factory=Settings)
    remaps: Mapping[int, int] = field(default_factory=dict)
    inverted: FrozenSet[int] = frozenset()

    @property
    def verbose(self) -> bool:
        return self.settings.enable_additional_logging

    def remap(self, number: int) -> int:
        if not self.settings.remap_parameters:
            return number
        return self.remaps.get(number, number)

    def is_inverted(self, number: int) -> bool:
        return number in self.inverted

    def with_overrides(
        self,
        max_rate: Optional[int] = None,
        remap: Optional[bool] = None,
        verbose: Optional[bool] = None,
    ) -> "BridgeConfig":
        s = self.settings
        if max_rate is not None:
            s = replace(s, max_parameter_message_rate=int(max_rate))
        if remap is not None:
            s = replace(s, remap_parameters=bool(remap))
        if verbose is not None:
            s = replace(s, enable_additional_logging=bool(verbose))
        return replace(self, settings=s)


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except (TypeError, ValueError):
        return None


def _read_remaps(parser: configparser.ConfigParser) -> Dict[int, int]:
    remaps: Dict[int, int] = {}
    if not parser.has_section(REMAP_SECTION):
        return remaps
    for key, value in parser.items(REMAP_SECTION):
        src = _parse_int(key)
        dst = _parse_int(value)
        # Unparsable pairs are skipped, not fatal
        if src is None or dst is None:
            continue
        remaps[src] = dst
    return remaps


def _read_inverted(parser: configparser.ConfigParser) -> FrozenSet[int]:
    raw = parser.get(INVERT_SECTION, "values", fallback=None)
    if not raw:
        return frozenset()
    out = set()
    for item in raw.split(","):
        n = _parse_int(item)
        if n is not None:
            out.add(n)
    return frozenset(out)


def _read_settings(parser: configparser.ConfigParser) -> Settings:
    defaults = Settings()
    if not parser.has_section(SETTINGS_SECTION):
        return defaults
    sec = parser[SETTINGS_SECTION]
    try:
        return Settings(
            max_parameter_message_rate=sec.getint("MaxParameterMessageRate", fallback=defaults.max_parameter_message_rate),
            remap_parameters=sec.getboolean("RemapParameters", fallback=defaults.remap_parameters),
            enable_additional_logging=sec.getboolean("EnableAdditionalLogging", fallback=defaults.enable_additional_logging),
        )
    except ValueError as e:
        raise ConfigError(f"[{SETTINGS_SECTION}] {e}") from e


def parse_config(text: str) -> BridgeConfig:
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(text)
    except configparser.Error as e:
        raise ConfigError(str(e)) from e
    return BridgeConfig(
        settings=_read_settings(parser),
        remaps=_read_remaps(parser),
        inverted=_read_inverted(parser),
    )


def load_config(path: Optional[str] = None) -> BridgeConfig:
    """Load the INI file at ``path``. A missing file yields the defaults."""
    path = path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return BridgeConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}") from e
    return parse_config(text)


def _err(errors: List[str], path: str, msg: str) -> None:
    errors.append(f"{path}: {msg}")


def validate_config(cfg: BridgeConfig) -> List[str]:
    """Return human-readable problems with a loaded config (empty when fine)."""
    errors: List[str] = []
    if cfg.settings.max_parameter_message_rate < 0:
        _err(errors, f"/{SETTINGS_SECTION}/MaxParameterMessageRate", "must be ≥0 (0 = unlimited)")
    for src, dst in sorted(cfg.remaps.items()):
        if not (0 <= src <= 128):
            _err(errors, f"/{REMAP_SECTION}/{src}", "source must be 0..127 or 128 (pitch wheel)")
        if not (0 <= dst <= 128):
            _err(errors, f"/{REMAP_SECTION}/{src}", "destination must be 0..127 or 128 (pitch wheel)")
    for n in sorted(cfg.inverted):
        if not (0 <= n <= 128):
            _err(errors, f"/{INVERT_SECTION}/values", f"{n} is not a controller 0..127 or 128 (pitch wheel)")
    return errors


def describe(cfg: BridgeConfig) -> List[str]:
    lines: List[str] = []
    rate = cfg.settings.max_parameter_message_rate
    lines.append(f"max parameter rate: {rate if rate > 0 else 'unlimited'}")
    lines.append(f"remap parameters: {'on' if cfg.settings.remap_parameters else 'off'}")
    if cfg.remaps:
        lines.append("parameter remapping:")
        for src, dst in sorted(cfg.remaps.items()):
            lines.append(f"  {src} -> {dst}")
    if cfg.inverted:
        lines.append("inverted parameters: " + ", ".join(str(n) for n in sorted(cfg.inverted)))
    return lines


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Check a companion INI config file")
    ap.add_argument("path", nargs="?", default=DEFAULT_CONFIG_PATH, help=f"Path to INI file (default: {DEFAULT_CONFIG_PATH})")
    args = ap.parse_args(argv)

    if not os.path.exists(args.path):
        print(f"note: {args.path} not found; defaults apply")
    try:
        cfg = load_config(args.path)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    errors = validate_config(cfg)
    if errors:
        print(f"invalid {args.path}:")
        for e in errors:
            print(f" - {e}")
        return 1

    for line in describe(cfg):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
