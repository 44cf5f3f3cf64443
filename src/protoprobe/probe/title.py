# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Streaming `<title>` extraction."""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, Iterable
from html.parser import HTMLParser

logger = logging.getLogger(__name__)


class TitleScanner(HTMLParser):
    """
    Incremental tokenizer that stops at the first ``<title>``.

    A start or self-closing ``title`` tag arms the scanner; the text of the
    next token becomes the title and the scan is over. When the next token is
    another tag the title is the empty string. Surrounding whitespace is
    stripped from the title text. Parser errors end the scan with no title.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._armed = False
        self._text: list[str] = []
        self.title: str | None = None
        self.done = False
        self.bytes_seen = 0

    def feed_bytes(self, chunk: bytes) -> bool:
        """Feed raw body bytes; return True once the scan is over."""
        if self.done:
            return True
        self.bytes_seen += len(chunk)
        self._feed_text(self._decoder.decode(chunk))
        return self.done

    def finish(self) -> str | None:
        """Flush buffered input at end of stream and return the title, if any."""
        if not self.done:
            self._feed_text(self._decoder.decode(b"", final=True))
        if not self.done:
            try:
                self.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Tokenizer error at end of stream: %s", exc)
        if self._armed and not self.done:
            self._complete()
        self.done = True
        return self.title

    def _feed_text(self, text: str) -> None:
        if not text:
            return
        try:
            self.feed(text)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Tokenizer error before title: %s", exc)
            self.title = None
            self.done = True

    def _complete(self) -> None:
        self.title = "".join(self._text).strip()
        self.done = True

    def _tag_token(self, tag: str) -> None:
        if self.done:
            return
        if self._armed:
            self._complete()
        elif tag.lower() == "title":
            self._armed = True

    def _other_token(self) -> None:
        if self._armed and not self.done:
            self._complete()

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._tag_token(tag)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._tag_token(tag)

    def handle_endtag(self, tag: str) -> None:
        self._other_token()

    def handle_comment(self, data: str) -> None:
        self._other_token()

    def handle_decl(self, decl: str) -> None:
        self._other_token()

    def handle_pi(self, data: str) -> None:
        self._other_token()

    def handle_data(self, data: str) -> None:
        if self._armed and not self.done:
            self._text.append(data)


def _over_budget(scanner: TitleScanner, max_bytes: int | None) -> bool:
    return bool(max_bytes) and scanner.bytes_seen >= max_bytes


def extract_title(chunks: Iterable[bytes], *, max_bytes: int | None = None) -> str | None:
    """
    Return the first title in a chunked body, or None.

    Only as many chunks as needed are consumed. Errors raised by ``chunks``
    itself propagate; tokenizer problems and end of stream yield None.
    """
    scanner = TitleScanner()
    for chunk in chunks:
        if scanner.feed_bytes(chunk):
            return scanner.title
        if _over_budget(scanner, max_bytes):
            logger.debug("No title within the first %d bytes", scanner.bytes_seen)
            return None
    return scanner.finish()


async def aextract_title(chunks: AsyncIterable[bytes], *, max_bytes: int | None = None) -> str | None:
    """Async counterpart of :func:`extract_title` for streamed response bodies."""
    scanner = TitleScanner()
    async for chunk in chunks:
        if scanner.feed_bytes(chunk):
            return scanner.title
        if _over_budget(scanner, max_bytes):
            logger.debug("No title within the first %d bytes", scanner.bytes_seen)
            return None
    return scanner.finish()


__all__ = ["TitleScanner", "aextract_title", "extract_title"]
