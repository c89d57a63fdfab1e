"""Connection descriptor domain exports."""

from .value_objects import ConfigFile, ConnectionDescriptor, PuppetModule

__all__ = ["ConfigFile", "ConnectionDescriptor", "PuppetModule"]
