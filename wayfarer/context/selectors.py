"""CSS selector generation for extracted page elements.

The in-page extraction script applies the same policy; this module fills in
selectors for elements whose raw record came back without one.
"""
from typing import Optional


def generate_selector(
    tag_name: str, element_id: Optional[str] = None, class_name: Optional[str] = None
) -> str:
    """``#id`` if the element has an id, else ``.firstClass``, else the tag name."""
    if element_id:
        return f"#{element_id}"
    if class_name:
        classes = [c for c in str(class_name).split(" ") if c]
        if classes:
            return f".{classes[0]}"
    return (tag_name or "*").lower()
