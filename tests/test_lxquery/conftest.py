"""Shared fixtures for the lxquery test suite."""

import pytest

from lxquery import reset_default_options

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<root>
  <head id="head">
    <title>Sample Document</title>
  </head>
  <unary id="unary" a="b"/>
  <inner id="inner-one" class="innerClass">
    <li id="one" class="item">Hello</li>
    <li id="two" class="item odd">World</li>
    <li id="three" class="item">Again</li>
    <li id="four" class="item odd">Done</li>
  </inner>
  <inner id="inner-two"><![CDATA[first]]><li id="five">Five</li><![CDATA[last]]></inner>
  <foot id="foot"/>
</root>
"""


@pytest.fixture
def sample_xml():
    """Markup of the sample document."""
    return SAMPLE_XML


@pytest.fixture
def sample_file(tmp_path):
    """The sample document written to disk."""
    path = tmp_path / "sample.xml"
    path.write_text(SAMPLE_XML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_default_options():
    """Keep process-wide defaults from leaking between tests."""
    reset_default_options()
    yield
    reset_default_options()
