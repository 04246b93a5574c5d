"""Template for creating custom cursor variants.

A cursor variant is a MatchSet subclass with extra or changed methods. Once
registered, every query() call that names it (``cursor="my-cursor"`` or the
``cursor`` option) returns the variant, and so does every cursor derived
from it by branch(), eq() or iteration.

Copy this template and replace the example methods with your own.
"""

from typing import Dict, List

from lxquery import MatchSet, query, register_cursor


class MyCustomCursor(MatchSet):
    """Custom cursor template - replace with your implementation."""

    def ids(self) -> List[str]:
        """Return the ``id`` attribute of every current element."""
        return [node.get("id") for node in self.get() if node.get("id") is not None]

    def table(self, key: str, value: str) -> Dict[str, str]:
        """Map one attribute to another across the current elements."""
        return {
            node.get(key): node.get(value)
            for node in self.get()
            if node.get(key) is not None
        }

    def highlight(self, class_name: str = "highlight") -> "MyCustomCursor":
        """Chainable method: add a class and keep going."""
        return self.add_class(class_name)


register_cursor("my-cursor", MyCustomCursor)


if __name__ == "__main__":
    doc = query("<r><a id='x' href='/x'/><a id='y' href='/y'/></r>", "a", cursor="my-cursor")
    print(doc.ids())
    print(doc.table("id", "href"))
    print(doc.highlight().xml())
