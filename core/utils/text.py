# File: core/utils/text.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import re

from django.utils.html import strip_tags

_OCTETS = re.compile(r"%[a-fA-F0-9]{2}")
_WHITESPACE = re.compile(r"[\r\n\t ]+")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_text_field(value) -> str:
    """
    Clean a single-line string coming from the request or the environment.

    Strips tags (and a dangling ``<``), percent-encoded octets and control
    characters, collapses whitespace and trims.
    """
    if value is None:
        return ""
    text = str(value)
    if "<" in text:
        text = strip_tags(text)
        text = text.replace("<", "")
    text = _CONTROL.sub("", text)
    text = _OCTETS.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()
