from __future__ import annotations

import xml.etree.ElementTree as etree

from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor

RE_INS = r"\+\+(?P<text>[^+\s](?:[^\n]*?[^+\s])?)\+\+"
RE_MARK = r"==(?P<text>[^=\s](?:[^\n]*?[^=\s])?)=="
RE_SUB = r"(?<!~)~(?P<text>[^~\s]+)~(?!~)"


class WrapProcessor(InlineProcessor):
    """Wrap the matched text in a single inline element."""

    def __init__(self, pattern, md, tag: str):
        super().__init__(pattern, md)
        self.tag = tag

    def handleMatch(self, m, data):
        el = etree.Element(self.tag)
        el.text = m.group("text")
        return el, m.start(0), m.end(0)


class MarksExtension(Extension):
    """``++inserted++``, ``==marked==`` and ``~subscript~`` inline markup."""

    def extendMarkdown(self, md):
        md.inlinePatterns.register(WrapProcessor(RE_INS, md, "ins"), "ins", 65)
        md.inlinePatterns.register(WrapProcessor(RE_MARK, md, "mark"), "mark", 64)
        md.inlinePatterns.register(WrapProcessor(RE_SUB, md, "sub"), "sub", 63)


def makeExtension(**kwargs):
    return MarksExtension(**kwargs)
