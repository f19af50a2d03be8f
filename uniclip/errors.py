# -*- coding: utf-8 -*-
"""
errors.py - Exception types raised by uniclip
"""


class UniclipError(Exception):
    """Base class for all uniclip errors"""


class RegistryError(UniclipError):
    """Connection registry rejected an operation (duplicate id, broken invariant)"""


class DiscoveryError(UniclipError):
    """The relay server could not be located"""
