"""Build targets, toolchain detection and package manifests for C and C++ projects."""

__version__ = "0.0.1"