"""Tests for the scanning layer: document, registry and pipeline."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup, Tag

from src.detection.models import ContentTag, DetectionResult, DetectionSource
from src.scanning.document import LiveDocument, Mutation
from src.scanning.models import ActionKind
from src.scanning.pipeline import ScanPipeline
from src.scanning.registry import BlockRegistry


def _chat(document: LiveDocument) -> Tag:
    chat = document.soup.find(id="chat")
    assert isinstance(chat, Tag)
    return chat


class TestLiveDocument:
    def test_append_html_notifies(self, document):
        seen: list[Mutation] = []
        document.subscribe(seen.append)

        nodes = document.append_html("<p>hi</p><pre>x</pre>", _chat(document))

        assert len(seen) == 1
        assert seen[0].target is _chat(document)
        assert [n.name for n in nodes] == ["p", "pre"]
        assert len(document.select("pre")) == 1

    def test_wrap_notifies_parent(self, document):
        document.append_html("<pre>x</pre>", _chat(document))
        pre = document.select("pre")[0]
        seen: list[Mutation] = []
        document.subscribe(seen.append)

        wrapper = document.wrap(pre, document.new_tag("div"))

        assert pre.parent is wrapper
        assert seen[0].added == [wrapper]
        assert seen[0].removed == [pre]

    def test_unsubscribe_stops_delivery(self, document):
        seen: list[Mutation] = []
        subscription = document.subscribe(seen.append)
        document.unsubscribe(subscription)

        document.append_html("<p>x</p>")

        assert seen == []
        assert document.subscriber_count == 0

    def test_remove(self, document):
        document.append_html("<pre>x</pre>")
        document.remove(document.select("pre")[0])
        assert document.select("pre") == []

    def test_new_tag_text(self, document):
        button = document.new_tag("button", {"type": "button"}, text="Save")
        assert button.get_text() == "Save"
        assert button["type"] == "button"

    def test_from_soup(self):
        soup = BeautifulSoup("<pre>x</pre>", "html.parser")
        document = LiveDocument.from_soup(soup)
        assert document.soup is soup
        assert document.subscriber_count == 0


class TestBlockRegistry:
    def test_mark_is_write_once(self):
        soup = BeautifulSoup("<pre>a</pre>", "html.parser")
        registry = BlockRegistry()

        assert registry.mark(soup.pre)
        assert not registry.mark(soup.pre)
        assert len(registry) == 1
        assert soup.pre in registry

    def test_identity_not_equality(self):
        soup = BeautifulSoup("<pre>a</pre><pre>a</pre>", "html.parser")
        first, second = soup.find_all("pre")
        registry = BlockRegistry()
        registry.mark(first)

        # structurally equal tags are still distinct blocks
        assert first == second
        assert registry.is_processed(first)
        assert not registry.is_processed(second)

    def test_processed_ids(self):
        soup = BeautifulSoup("<pre>a</pre>", "html.parser")
        registry = BlockRegistry()
        registry.mark(soup.pre)
        assert registry.processed_ids() == frozenset({id(soup.pre)})


class TestScanOnce:
    def test_attaches_affordance(self, document):
        document.append_html(
            '<pre><code class="language-python">print(1)</code></pre>', _chat(document)
        )
        pipeline = ScanPipeline(document)

        blocks = pipeline.scan_once()

        assert len(blocks) == 1
        block = blocks[0]
        assert block.tag is ContentTag.PY
        assert block.action is ActionKind.SAVE
        wrapper = block.element.parent
        assert "aic-block" in wrapper["class"]
        button = wrapper.find("button")
        assert button["data-action"] == "save"
        assert button.get_text() == "Save"

    def test_shell_block_gets_run_button(self, document):
        document.append_html("<pre><code>#!/usr/bin/env bash\necho hi</code></pre>")
        pipeline = ScanPipeline(document)

        block = pipeline.scan_once()[0]

        assert block.executable
        assert pipeline.affordance_for(block.element).button.get_text() == "Run"

    def test_second_scan_is_a_no_op(self, document):
        document.append_html("<pre>a</pre><pre>b</pre>", _chat(document))
        pipeline = ScanPipeline(document)

        assert len(pipeline.scan_once()) == 2
        assert pipeline.scan_once() == []
        assert len(document.select("button")) == 2
        assert len(document.select("div.aic-block")) == 2

    def test_confirmation_surface_is_skipped(self, document):
        document.append_html(
            '<div class="aic-modal-overlay"><div><pre>preview</pre></div></div>'
            '<pre class="aic-exec-preview">echo hi</pre>'
            "<pre>real</pre>"
        )
        pipeline = ScanPipeline(document)

        blocks = pipeline.scan_once()

        assert [b.text for b in blocks] == ["real"]
        assert len(pipeline.registry) == 1

    def test_custom_selector(self, document):
        document.append_html('<pre>a</pre><div class="snippet">b</div>')
        pipeline = ScanPipeline(document, selector="div.snippet")
        assert [b.text for b in pipeline.scan_once()] == ["b"]


class TestObservation:
    def test_start_scans_existing_blocks(self, document):
        document.append_html("<pre>early</pre>")
        pipeline = ScanPipeline(document)

        pipeline.start()

        assert len(pipeline.registry) == 1
        assert pipeline.running

    def test_start_is_idempotent(self, document):
        pipeline = ScanPipeline(document)
        first = pipeline.start()
        assert pipeline.start() is first
        assert document.subscriber_count == 1

    def test_streamed_blocks_are_processed_once(self, document):
        pipeline = ScanPipeline(document)
        pipeline.start()

        document.append_html("<p>one</p><pre>a</pre><pre>b</pre>", _chat(document))
        document.append_html("<pre>c</pre>", _chat(document))

        # every attach re-enters the scan; each block is still wrapped once
        assert len(pipeline.registry) == 3
        assert len(pipeline.affordances()) == 3
        assert len(document.select("div.aic-block")) == 3
        for pre in document.select("pre"):
            assert "aic-block" in pre.parent["class"]
            assert "aic-block" not in (pre.parent.parent.get("class") or [])

    def test_many_blocks_in_one_mutation(self, document):
        pipeline = ScanPipeline(document)
        pipeline.start()

        document.append_html("<pre>x</pre>" * 500, _chat(document))

        assert len(pipeline.registry) == 500
        assert len(pipeline.affordances()) == 500
        assert len(document.select("div.aic-block")) == 500
        assert len(document.select("button")) == 500

    def test_subscribed_scan_returns_every_new_block(self, document):
        pipeline = ScanPipeline(document)
        pipeline.start()
        chat = _chat(document)
        # edits made straight on the tree are not reported
        for text in ("a", "b", "c"):
            pre = document.new_tag("pre", text=text)
            chat.append(pre)

        blocks = pipeline.scan_once()

        assert [b.text for b in blocks] == ["a", "b", "c"]
        assert pipeline.scan_once() == []

    def test_stop_keeps_marks(self, document):
        pipeline = ScanPipeline(document)
        pipeline.start()
        document.append_html("<pre>a</pre>")
        pipeline.stop()

        document.append_html("<pre>b</pre>")

        assert not pipeline.running
        assert len(pipeline.registry) == 1
        assert len(pipeline.scan_once()) == 1
        assert len(pipeline.registry) == 2


class TestActivation:
    def test_default_activation_detects_filename(self, document):
        pipeline = ScanPipeline(document)
        pipeline.start()
        document.append_html(
            "<p>Save this as `notes/todo.md`</p>"
            '<pre><code class="language-md">- buy milk</code></pre>',
            _chat(document),
        )
        affordance = pipeline.affordances()[0]

        result = pipeline.activate(affordance.button)

        assert isinstance(result, DetectionResult)
        assert result.filename == "notes/todo.md"
        assert result.source is DetectionSource.CONTEXT

    def test_custom_handler_gets_block(self, document):
        received = []
        pipeline = ScanPipeline(document, on_activate=received.append)
        document.append_html("<pre>x</pre>")
        block = pipeline.scan_once()[0]

        pipeline.activate(block.element)

        assert received == [block]

    def test_unknown_element(self, document):
        pipeline = ScanPipeline(document)
        with pytest.raises(LookupError):
            pipeline.activate(document.new_tag("pre"))

    def test_block_text_is_read_live(self, document):
        pipeline = ScanPipeline(document)
        document.append_html("<pre><code>partial</code></pre>")
        block = pipeline.scan_once()[0]

        block.element.code.string = "partial and complete"

        assert block.text == "partial and complete"
