import threading
import time

import pytest

from runner.dispatcher import QueryDispatcher
from runner.models import QueryRequest, ResultItem
from runner.providers import Provider, ProviderRegistry


class FixedProvider(Provider):
    def __init__(self, name, scores, delay=0.0):
        self.name = name
        self.scores = scores
        self.delay = delay
        self.calls = []

    def setup(self):
        pass

    def query(self, text):
        self.calls.append(text)
        if self.delay:
            time.sleep(self.delay)
        return [
            ResultItem(labels={"label": f"{self.name}-{i}"}, identifier=f"{self.name}-{i}",
                       provider=self.name, score=score)
            for i, score in enumerate(self.scores)
        ]


class FailingProvider(Provider):
    name = "broken"

    def setup(self):
        pass

    def query(self, text):
        raise RuntimeError("boom")


class BlockingProvider(Provider):
    name = "stuck"

    def __init__(self):
        self.release = threading.Event()

    def setup(self):
        pass

    def query(self, text):
        self.release.wait(5)
        return [ResultItem(identifier="late", provider=self.name, score=100)]


def labels(items):
    return [i.labels["label"] for i in items]


class TestQueryDispatcher:
    def test_merges_and_sorts_by_score(self):
        registry = ProviderRegistry([FixedProvider("a", [5, 1]), FixedProvider("b", [3])])
        items = QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["a", "b"]))
        assert labels(items) == ["a-0", "b-0", "a-1"]

    def test_query_text_is_forwarded(self):
        provider = FixedProvider("a", [1])
        QueryDispatcher(ProviderRegistry([provider])).dispatch(QueryRequest(query="fire", providers=["a"]))
        assert provider.calls == ["fire"]

    def test_unknown_providers_are_ignored(self):
        registry = ProviderRegistry([FixedProvider("a", [1])])
        items = QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["nope", "a"]))
        assert labels(items) == ["a-0"]

    def test_only_requested_providers_run(self):
        a, b = FixedProvider("a", [1]), FixedProvider("b", [1])
        QueryDispatcher(ProviderRegistry([a, b])).dispatch(QueryRequest(query="x", providers=["b"]))
        assert a.calls == []
        assert b.calls == ["x"]

    def test_no_providers(self):
        registry = ProviderRegistry([FixedProvider("a", [1])])
        assert QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=[])) == []

    def test_duplicate_names_run_once(self):
        provider = FixedProvider("a", [1])
        QueryDispatcher(ProviderRegistry([provider])).dispatch(
            QueryRequest(query="x", providers=["a", "a"]))
        assert provider.calls == ["x"]

    @pytest.mark.parametrize("delays", [(0.0, 0.05), (0.05, 0.0)])
    def test_ties_follow_request_order_not_arrival(self, delays):
        registry = ProviderRegistry([
            FixedProvider("a", [2, 2], delay=delays[0]),
            FixedProvider("b", [2], delay=delays[1]),
        ])
        items = QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["a", "b"]))
        assert labels(items) == ["a-0", "a-1", "b-0"]

        items = QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["b", "a"]))
        assert labels(items) == ["b-0", "a-0", "a-1"]

    def test_providers_run_concurrently(self):
        registry = ProviderRegistry([FixedProvider("a", [1], delay=0.3), FixedProvider("b", [1], delay=0.3)])
        start = time.time()
        QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["a", "b"]))
        assert time.time() - start < 0.55

    def test_failing_provider_contributes_nothing(self):
        registry = ProviderRegistry([FailingProvider(), FixedProvider("a", [1])])
        items = QueryDispatcher(registry).dispatch(QueryRequest(query="x", providers=["broken", "a"]))
        assert labels(items) == ["a-0"]

    def test_slow_provider_dropped_after_deadline(self):
        stuck = BlockingProvider()
        registry = ProviderRegistry([stuck, FixedProvider("a", [1])])
        try:
            items = QueryDispatcher(registry, timeout=0.1).dispatch(
                QueryRequest(query="x", providers=["stuck", "a"]))
        finally:
            stuck.release.set()
        assert labels(items) == ["a-0"]

    def test_without_deadline_waits_for_everyone(self):
        registry = ProviderRegistry([FixedProvider("slow", [9], delay=0.2), FixedProvider("a", [1])])
        items = QueryDispatcher(registry, timeout=None).dispatch(
            QueryRequest(query="x", providers=["slow", "a"]))
        assert labels(items) == ["slow-0", "a-0"]


class TestProviderRegistry:
    def test_register_and_lookup(self):
        provider = FixedProvider("a", [])
        registry = ProviderRegistry([provider])
        assert registry.get("a") is provider
        assert registry.get("b") is None
        assert "a" in registry
        assert registry.names() == ["a"]

    def test_nameless_provider_rejected(self):
        with pytest.raises(ValueError):
            ProviderRegistry().register(FixedProvider("", []))

    def test_setup_all(self):
        class Counting(FixedProvider):
            setups = 0

            def setup(self):
                self.setups += 1

        provider = Counting("a", [])
        ProviderRegistry([provider]).setup_all()
        assert provider.setups == 1
