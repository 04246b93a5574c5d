#!/usr/bin/env python3
"""
Quick Start Guide for lxquery.

This example walks through loading a document, selecting and traversing
nodes, changing the tree and writing it back out.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lxquery import HTML_STUB, QueryConfig, query

CATALOG = """<?xml version="1.0" encoding="UTF-8"?>
<catalog>
  <book id="b1" genre="fiction"><title>My Book</title><price currency="USD">19.99</price></book>
  <book id="b2" genre="poetry"><title>Verses</title><price currency="EUR">7.50</price></book>
  <book id="b3" genre="fiction"><title>Another Story</title><price currency="USD">12.00</price></book>
</catalog>"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - lxquery")
    print("=" * 45)

    # Step 1: Load a document and select from it
    print("\n📄 Step 1: Selecting")
    print("-" * 30)

    books = query(CATALOG, "book")
    print(f"✅ Found {books.size()} books")
    print(f"📖 Fiction titles: {query(CATALOG, 'book[genre=fiction] title').text_implode()}")

    # Step 2: Traverse and step back through history
    print("\n🧭 Step 2: Traversal")
    print("-" * 30)

    doc = query(CATALOG)
    first_title = doc.find("book:first").children("title").text()
    print(f"📖 First title: {first_title}")
    print(f"↩️  After end(): {doc.end().attr('id')}")
    print(f"🏷️  Next book: {doc.next().attr('id')}")

    # Step 3: Change the tree
    print("\n✏️  Step 3: Mutation")
    print("-" * 30)

    doc.top("book[genre=poetry]").remove()
    doc.top("catalog").append('<book id="b4" genre="essay"><title>Essays</title></book>')
    doc.top("price").attr("currency", "GBP")
    doc.top("book").add_class("available")
    print(f"📚 Books now: {[node.get('id') for node in doc.top('book').get()]}")

    # Step 4: Serialize
    print("\n🔄 Step 4: Output")
    print("-" * 30)

    print(doc.top().xml(omit_declaration=True))

    print("\n🎉 Quick start complete!")


def html_example():
    """Example building an HTML page from the stub document."""

    print("\n\n🌐 HTML EXAMPLE")
    print("=" * 35)

    page = query(HTML_STUB, "title").text("Catalog")
    page.top("body").append("<h1>Catalog</h1><ul/>")
    for book in query(CATALOG, "book"):
        title = book.find("title").text()
        page.top("ul").append(f"<li>{title}</li>")
    page.top("li").wrap_inner("<em/>")
    print(page.top().xhtml())


def configuration_example():
    """Example showing configuration options."""

    print("\n\n⚙️  CONFIGURATION EXAMPLE")
    print("=" * 35)

    # Entities outside XML's five need replacing before the XML parser sees them
    lenient = query("<p>&copy; 2024 Tom & Jerry</p>", config=QueryConfig.lenient())
    print(f"📋 Lenient text: {lenient.text()}")

    latin = query(encoding="ISO-8859-1").append("<note>café</note>")
    print(f"📋 Latin-1 document: {latin.xml()}")


def main():
    """Main function."""
    try:
        quick_start_example()
        html_example()
        configuration_example()
    except Exception as e:
        print(f"❌ Example failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
