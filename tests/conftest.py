import textwrap

import pytest

from rss_reader import db


@pytest.fixture
def session_factory():
    """Session factory bound to an in-memory SQLite database."""
    engine = db.init_engine("sqlite:///:memory:")
    yield db.get_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return db.FeedStore(session_factory)


@pytest.fixture
def rss_document():
    return textwrap.dedent(
        """\
        <?xml version="1.0" encoding="UTF-8"?>
        <rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/"
             xmlns:media="http://search.yahoo.com/mrss/">
          <channel>
            <title>Channel Title</title>
            <link>https://example.com/</link>
            <description>Channel description</description>
            <item>
              <title>First</title>
              <link>https://example.com/1</link>
              <description>&lt;p&gt;Hello&amp;nbsp;&amp;amp;&amp;nbsp;World&lt;/p&gt;</description>
              <pubDate>Mon, 06 Jan 2025 09:30:00 +0900</pubDate>
              <dc:creator>Alice</dc:creator>
              <enclosure type="image/jpeg" url="https://img/1.jpg" length="0"/>
            </item>
            <item>
              <title>Second</title>
              <link>https://example.com/2</link>
              <description><![CDATA[<b>Bold</b> text]]></description>
              <pubDate>Tue, 07 Jan 2025 10:00:00 +0000</pubDate>
            </item>
            <item>
              <title>Third</title>
              <link>https://example.com/3</link>
            </item>
          </channel>
        </rss>
        """
    ).encode("utf-8")
