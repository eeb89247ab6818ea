"""Translations."""

from .translator import I18n

__all__ = ["I18n"]
