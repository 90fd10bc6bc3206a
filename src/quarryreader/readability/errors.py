"""
Exceptions raised by the readability engine.
"""

from __future__ import annotations


class ParseAbortedError(ValueError):
    """The document has more elements than ``max_elems_to_parse`` allows."""

    def __init__(self, element_count: int) -> None:
        self.element_count = element_count
        super().__init__(f"Aborting parsing document; {element_count} elements found")
