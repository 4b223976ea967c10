"""Module registry: descriptor parsing and module discovery."""

from registry.descriptors import DescriptorError, parse_pom, read_module_paths
from registry.discovery import (
    DescriptorEntry,
    RegistryError,
    UnknownModuleError,
    discover_modules,
    scan_descriptors,
    select_modules,
)
from registry.models import DependencyRef, Module, PomDescriptor

__all__ = [
    "DependencyRef",
    "DescriptorEntry",
    "DescriptorError",
    "Module",
    "PomDescriptor",
    "RegistryError",
    "UnknownModuleError",
    "discover_modules",
    "parse_pom",
    "read_module_paths",
    "scan_descriptors",
    "select_modules",
]
