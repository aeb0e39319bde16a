"""Schemas package for the CloudEvent model and its creation options.

The models here hold attributes as given; rules on their content live in
``cloudevent.validation``.
"""

__all__ = ["event"]
