"""
Configuration management for the rear suspension analyzer.

This module handles:
- Loading and saving named bike setups in INI files
- Loading and saving single designs as JSON ({"name": ..., "geometry": {...}})
- Converting between Geometry records and plain dictionaries
- Setup validation and management
"""

import configparser
import json
import logging
import os
import re
from dataclasses import asdict, replace

from .model import GEOMETRY_KEYS, INT_KEYS, IdlerType, default_geometry

logger = logging.getLogger(__name__)

DEFAULT_DESIGN_NAME = "Loaded Design"


def _snake_case(key):
    """bbToPivotX -> bb_to_pivot_x; snake_case keys pass through."""
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key).lower()


def _coerce(key, value):
    if key == "idler_type":
        return value if isinstance(value, IdlerType) else IdlerType(str(value))
    if key in INT_KEYS:
        teeth = float(value)
        if not teeth.is_integer():
            raise ValueError(f"{key} must be a whole number, got {value!r}")
        return int(teeth)
    return float(value)


def geometry_to_dict(geometry):
    """Field-for-field dictionary of a Geometry, enum stored by value."""
    data = asdict(geometry)
    data["idler_type"] = geometry.idler_type.value
    return data


def geometry_from_dict(data, base=None):
    """
    Build a Geometry from a dictionary. Keys may be snake_case or the
    camelCase used by the web front end; unknown keys are ignored and missing
    ones come from base (the default bike when omitted).
    """
    base = default_geometry() if base is None else base
    values = {}
    for raw_key, value in data.items():
        key = _snake_case(raw_key)
        if key not in GEOMETRY_KEYS or value is None:
            continue
        try:
            values[key] = _coerce(key, value)
        except (ValueError, TypeError):
            raise ValueError(f"Geometry key '{raw_key}' has invalid value {value!r}")
    return replace(base, **values)


class ConfigManager:
    """Manages setup and design loading, saving, and validation."""

    def __init__(self):
        self.setups = {}
        self.current_setups_path = None

    # ---------- INI setups ----------
    def read_setups_ini(self, path):
        """
        Parse an INI file with one section per bike.
        Returns a dict: {section_name: Geometry, ...}
        Unrecognized keys are ignored; comments allowed.
        """
        cp = configparser.ConfigParser(inline_comment_prefixes=('#', ';'))
        cp.optionxform = str  # preserve case

        if not cp.read(path, encoding="utf-8"):
            raise RuntimeError("Unable to read file or empty file")

        setups = {}
        for section in cp.sections():
            vals = {}
            for k, raw in cp.items(section):
                key = _snake_case(k)
                if key not in GEOMETRY_KEYS:
                    continue
                try:
                    vals[key] = _coerce(key, raw)
                except ValueError:
                    if key == "idler_type":
                        choices = ", ".join(t.value for t in IdlerType)
                        raise ValueError(f"Section [{section}] key '{k}' must be one of: {choices}")
                    if key in INT_KEYS:
                        raise ValueError(f"Section [{section}] key '{k}' must be a whole number")
                    raise ValueError(f"Section [{section}] key '{k}' must be a number")
            if vals:
                setups[section] = replace(default_geometry(), **vals)

        if not setups:
            raise RuntimeError("No valid sections/keys found")
        return setups

    def write_setups_ini(self, path, setups_dict):
        """
        Write all setups to an INI file.
        setups_dict: {section_name: Geometry, ...}
        Sections already in the file but not in setups_dict are kept.
        """
        cp = configparser.ConfigParser()
        cp.optionxform = str  # preserve key case

        # Merge with existing file (don't drop unrelated sections)
        if os.path.exists(path):
            try:
                cp.read(path, encoding="utf-8")
            except configparser.Error:
                logger.warning("Existing setups file %s is unreadable; overwriting", path)
                cp = configparser.ConfigParser()
                cp.optionxform = str

        for section, geometry in setups_dict.items():
            if section not in cp.sections():
                cp.add_section(section)
            for k, v in geometry_to_dict(geometry).items():
                cp.set(section, k, str(v))

        with open(path, "w", encoding="utf-8") as f:
            cp.write(f)
        logger.info("Wrote %d setup(s) to %s", len(setups_dict), path)

    def load_setups(self, path):
        """Load setups from a file and update internal state."""
        setups = self.read_setups_ini(path)
        self.setups = setups
        self.current_setups_path = path
        logger.info("Loaded %d setup(s) from %s", len(setups), path)
        return setups

    def save_setups(self, path, setups_dict=None):
        """Save setups to a file."""
        if setups_dict is None:
            setups_dict = self.setups

        self.write_setups_ini(path, setups_dict)
        self.current_setups_path = path

    def add_setup(self, name, geometry):
        """Add a new setup to the current collection."""
        self.setups[name] = geometry

    def get_setup(self, name):
        """Get a setup by name."""
        return self.setups.get(name)

    def get_setup_names(self):
        """Get all setup names."""
        return sorted(self.setups.keys())

    def validate_setup(self, setup_dict):
        """Validate that a setup dictionary contains valid values."""
        if not isinstance(setup_dict, dict):
            return False

        for raw_key, value in setup_dict.items():
            key = _snake_case(raw_key)
            if key not in GEOMETRY_KEYS:
                continue
            try:
                _coerce(key, value)
            except (ValueError, TypeError):
                return False

        return True

    # ---------- JSON designs ----------
    def save_design(self, path, name, geometry):
        """Write a design file: {"name": ..., "geometry": {...}}."""
        design = {"name": name, "geometry": geometry_to_dict(geometry)}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(design, f, indent=2)
        logger.info("Saved design '%s' to %s", name, path)

    def load_design(self, path):
        """Read a design file and return (name, Geometry)."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                design = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Design file is not valid JSON: {e}")

        if not isinstance(design, dict) or not isinstance(design.get("geometry"), dict):
            raise ValueError("Design file has no geometry object")

        name = design.get("name") or DEFAULT_DESIGN_NAME
        geometry = geometry_from_dict(design["geometry"])
        logger.info("Loaded design '%s' from %s", name, path)
        return name, geometry
